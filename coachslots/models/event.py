from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class Event(SQLModel, table=True):
    __tablename__ = "events"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    organization_id: str = Field(index=True)
    title: str = ""
    start_datetime: datetime = Field(index=True, sa_type=DateTime())
    end_datetime: datetime | None = Field(default=None, sa_type=DateTime())
    duration_minutes: int | None = None
    status: str = Field(default="confirmed", index=True)
    event_type: str = "coaching_1on1"
    intake_call_config_id: str | None = Field(default=None, index=True)
    prospect_name: str | None = None
    prospect_email: str | None = None
    prospect_timezone: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
