from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return uuid4().hex


class CoachAvailability(SQLModel, table=True):
    """Per-organization availability settings. One row per organization."""

    __tablename__ = "coach_availability"
    organization_id: str = Field(primary_key=True)
    coach_user_id: str = ""
    # {"0": [{"start": "09:00", "end": "17:00"}], ...}; 0 = Sunday
    weekly_schedule: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    default_duration: int = 60
    buffer_between_calls: int = 15
    timezone: str = "America/New_York"
    advance_booking_days: int = 30
    min_notice_hours: int = 24
    sync_external_busy: bool = True
    push_events_to_calendar: bool = True
    external_calendar_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class BlockedSlot(SQLModel, table=True):
    __tablename__ = "blocked_slots"
    id: str = Field(default_factory=_new_id, primary_key=True)
    organization_id: str = Field(
        foreign_key="coach_availability.organization_id", ondelete="CASCADE", index=True
    )
    start: datetime = Field(sa_type=DateTime())
    end: datetime = Field(index=True, sa_type=DateTime())
    reason: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
