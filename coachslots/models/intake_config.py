from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class IntakeCallConfig(SQLModel, table=True):
    """Funnel-side scheduling configuration for intake calls."""

    __tablename__ = "intake_call_configs"
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    organization_id: str = Field(index=True)
    name: str
    description: str | None = None
    duration: int = 30
    is_active: bool = True
    use_custom_availability: bool = False
    custom_weekly_schedule: dict | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
    updated_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())
