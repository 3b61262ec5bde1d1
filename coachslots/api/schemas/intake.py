from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from coachslots.api.schemas.scheduling import WeeklySchedule
from coachslots.scheduling.intervals import to_utc
from coachslots.scheduling.types import TimeWindow


class IntakeConfigCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    duration: int = Field(default=30, gt=0, le=24 * 60)
    is_active: bool = True
    use_custom_availability: bool = False
    custom_weekly_schedule: WeeklySchedule | None = None


class IntakeConfigUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    duration: int | None = Field(default=None, gt=0, le=24 * 60)
    is_active: bool | None = None
    use_custom_availability: bool | None = None
    custom_weekly_schedule: WeeklySchedule | None = None


class IntakeConfigPublic(BaseModel):
    id: str
    organization_id: str
    name: str
    description: str | None = None
    duration: int
    is_active: bool
    use_custom_availability: bool
    custom_weekly_schedule: dict[int, list[TimeWindow]] | None = None
    created_at: datetime
    updated_at: datetime


class BookIntakeRequest(BaseModel):
    # The funnel frontend sends camelCase
    model_config = ConfigDict(populate_by_name=True)

    intake_call_config_id: str = Field(alias="intakeCallConfigId")
    start_datetime: datetime = Field(alias="startDateTime")
    end_datetime: datetime = Field(alias="endDateTime")
    name: str
    email: EmailStr
    timezone: str | None = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v

    @model_validator(mode="after")
    def _end_after_start(self) -> "BookIntakeRequest":
        if to_utc(self.end_datetime) <= to_utc(self.start_datetime):
            raise ValueError("endDateTime must be after startDateTime")
        return self


class BookingPublic(BaseModel):
    event_id: str
    intake_call_config_id: str
    start_datetime: datetime
    end_datetime: datetime
    status: str
