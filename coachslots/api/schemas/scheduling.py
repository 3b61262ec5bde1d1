from datetime import datetime
from typing import Annotated

import pytz
from pydantic import AfterValidator, BaseModel, field_validator, model_validator

from coachslots.scheduling.intervals import parse_clock, to_utc
from coachslots.scheduling.types import AvailableSlot, TimeWindow


def validate_weekly_schedule(value: dict[int, list[TimeWindow]]) -> dict[int, list[TimeWindow]]:
    for day, windows in value.items():
        if not 0 <= day <= 6:
            raise ValueError(f"Day of week must be 0 (Sunday) to 6 (Saturday), got {day}")
        for w in windows:
            if parse_clock(w.start) >= parse_clock(w.end):
                raise ValueError(f"Window {w.start}-{w.end} must start before it ends")
    return value


WeeklySchedule = Annotated[dict[int, list[TimeWindow]], AfterValidator(validate_weekly_schedule)]


def weekly_schedule_to_json(value: dict[int, list[TimeWindow]]) -> dict[str, list[dict[str, str]]]:
    return {str(day): [w.model_dump() for w in windows] for day, windows in value.items()}


class AvailableSlotsResponse(BaseModel):
    slots: list[AvailableSlot]
    timezone: str
    duration: int
    buffer: int


class FunnelSlotsResponse(BaseModel):
    slots: list[AvailableSlot]
    timezone: str


class BlockedSlotCreate(BaseModel):
    start: datetime
    end: datetime
    reason: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "BlockedSlotCreate":
        if to_utc(self.end) <= to_utc(self.start):
            raise ValueError("end must be after start")
        return self


class BlockedSlotPublic(BaseModel):
    id: str
    start: datetime
    end: datetime
    reason: str | None = None


class AvailabilityPublic(BaseModel):
    organization_id: str
    coach_user_id: str
    weekly_schedule: dict[int, list[TimeWindow]]
    blocked_slots: list[BlockedSlotPublic]
    default_duration: int
    buffer_between_calls: int
    timezone: str
    advance_booking_days: int
    min_notice_hours: int
    sync_external_busy: bool
    push_events_to_calendar: bool
    external_calendar_id: str | None = None
    created_at: datetime
    updated_at: datetime


class AvailabilityUpdate(BaseModel):
    weekly_schedule: WeeklySchedule | None = None
    default_duration: int | None = None
    buffer_between_calls: int | None = None
    timezone: str | None = None
    advance_booking_days: int | None = None
    min_notice_hours: int | None = None
    sync_external_busy: bool | None = None
    push_events_to_calendar: bool | None = None
    external_calendar_id: str | None = None

    @field_validator("default_duration")
    @classmethod
    def _positive_duration(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("default_duration must be positive")
        return v

    @field_validator("buffer_between_calls", "advance_booking_days", "min_notice_hours")
    @classmethod
    def _not_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str | None) -> str | None:
        if v is not None and v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone {v!r}")
        return v
