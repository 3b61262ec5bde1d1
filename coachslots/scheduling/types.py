"""
Value types consumed and produced by the slot calculator.

These are plain snapshots: the calculator never reads the database, so callers
build them from the stored rows (see services.availability_service).
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

DEFAULT_EVENT_DURATION_MINUTES = 60


class TimeWindow(BaseModel):
    """Recurring open window, wall-clock "HH:MM" in the coach's timezone."""

    start: str
    end: str


class TimeRange(BaseModel):
    start: datetime
    end: datetime


class BookedEvent(BaseModel):
    start: datetime
    end: datetime | None = None
    duration_minutes: int | None = None

    @property
    def end_time(self) -> datetime:
        if self.end is not None:
            return self.end
        return self.start + timedelta(minutes=self.duration_minutes or DEFAULT_EVENT_DURATION_MINUTES)


class AvailabilityRules(BaseModel):
    # 0 = Sunday .. 6 = Saturday
    weekly_schedule: dict[int, list[TimeWindow]] = Field(default_factory=dict)
    blocked_slots: list[TimeRange] = Field(default_factory=list)
    timezone: str = "UTC"
    default_duration: int = 60
    buffer_between_calls: int = 0
    advance_booking_days: int = 30
    min_notice_hours: int = 0
    sync_external_busy: bool = False
    external_calendar_id: str | None = None


class AvailableSlot(BaseModel):
    start: datetime
    end: datetime
    duration: int
