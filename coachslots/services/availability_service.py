import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.core.config import settings
from coachslots.models.availability import BlockedSlot, CoachAvailability
from coachslots.scheduling.intervals import to_naive_utc
from coachslots.scheduling.types import AvailabilityRules, TimeRange, TimeWindow

logger = logging.getLogger(__name__)

# Values used the first time an organization's availability is read
DEFAULT_WORKDAY = [{"start": "09:00", "end": "17:00"}]
DEFAULT_DURATION = 60
DEFAULT_BUFFER = 15
DEFAULT_ADVANCE_BOOKING_DAYS = 30
DEFAULT_MIN_NOTICE_HOURS = 24
DEFAULT_SYNC_EXTERNAL_BUSY = True
DEFAULT_PUSH_EVENTS_TO_CALENDAR = True


def default_weekly_schedule() -> dict[str, list[dict[str, str]]]:
    """Monday to Friday 09:00-17:00, weekends closed. Keys are day numbers, 0 = Sunday."""
    return {
        str(day): [dict(w) for w in DEFAULT_WORKDAY] if 1 <= day <= 5 else []
        for day in range(7)
    }


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _default_availability(organization_id: str, coach_user_id: str) -> CoachAvailability:
    return CoachAvailability(
        organization_id=organization_id,
        coach_user_id=coach_user_id,
        weekly_schedule=default_weekly_schedule(),
        default_duration=DEFAULT_DURATION,
        buffer_between_calls=DEFAULT_BUFFER,
        timezone=settings.default_timezone,
        advance_booking_days=DEFAULT_ADVANCE_BOOKING_DAYS,
        min_notice_hours=DEFAULT_MIN_NOTICE_HOURS,
        sync_external_busy=DEFAULT_SYNC_EXTERNAL_BUSY,
        push_events_to_calendar=DEFAULT_PUSH_EVENTS_TO_CALENDAR,
    )


async def get_availability(session: AsyncSession, organization_id: str) -> CoachAvailability | None:
    result = await session.execute(
        select(CoachAvailability).where(CoachAvailability.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_availability(
    session: AsyncSession, organization_id: str, coach_user_id: str = ""
) -> CoachAvailability:
    """Return the organization's availability, inserting the defaults on first access.

    Concurrent first reads race on the primary key; the loser's insert is a
    no-op and both callers get the same row.
    """
    existing = await get_availability(session, organization_id)
    if existing:
        return existing
    insert = pg_insert if session.get_bind().dialect.name == "postgresql" else sqlite_insert
    values = _default_availability(organization_id, coach_user_id).model_dump()
    result = await session.execute(
        insert(CoachAvailability)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["organization_id"])
    )
    if result.rowcount:
        logger.info("Created default availability for organization %s", organization_id)
    return await get_availability(session, organization_id)


async def list_blocked_slots(session: AsyncSession, organization_id: str) -> list[BlockedSlot]:
    result = await session.execute(
        select(BlockedSlot)
        .where(BlockedSlot.organization_id == organization_id)
        .order_by(BlockedSlot.start)
    )
    return list(result.scalars().all())


def _weekly_schedule_from_json(raw: dict[str, Any] | None) -> dict[int, list[TimeWindow]]:
    # JSON columns hand back string keys
    schedule: dict[int, list[TimeWindow]] = {}
    for day, windows in (raw or {}).items():
        schedule[int(day)] = [TimeWindow(start=w["start"], end=w["end"]) for w in windows or []]
    return schedule


async def get_availability_rules(
    session: AsyncSession,
    organization_id: str,
    weekly_schedule_override: dict[str, Any] | None = None,
) -> AvailabilityRules:
    """Snapshot of the organization's availability for the slot calculator."""
    availability = await get_or_create_availability(session, organization_id)
    blocked = await list_blocked_slots(session, organization_id)
    weekly = weekly_schedule_override if weekly_schedule_override is not None else availability.weekly_schedule
    return AvailabilityRules(
        weekly_schedule=_weekly_schedule_from_json(weekly),
        blocked_slots=[TimeRange(start=b.start, end=b.end) for b in blocked],
        timezone=availability.timezone or settings.default_timezone,
        default_duration=availability.default_duration,
        buffer_between_calls=availability.buffer_between_calls,
        advance_booking_days=availability.advance_booking_days,
        min_notice_hours=availability.min_notice_hours,
        sync_external_busy=availability.sync_external_busy,
        external_calendar_id=availability.external_calendar_id,
    )


async def update_availability(
    session: AsyncSession, organization_id: str, changes: dict[str, Any]
) -> CoachAvailability:
    availability = await get_or_create_availability(session, organization_id)
    for key, value in changes.items():
        setattr(availability, key, value)
    availability.updated_at = _utc_naive_now()
    session.add(availability)
    await session.flush()
    await session.refresh(availability)
    return availability


async def add_blocked_slot(
    session: AsyncSession,
    organization_id: str,
    start: datetime,
    end: datetime,
    reason: str | None = None,
) -> BlockedSlot:
    await get_or_create_availability(session, organization_id)
    slot = BlockedSlot(
        organization_id=organization_id,
        start=to_naive_utc(start),
        end=to_naive_utc(end),
        reason=reason,
    )
    session.add(slot)
    await session.flush()
    await session.refresh(slot)
    return slot


async def remove_blocked_slot(session: AsyncSession, organization_id: str, slot_id: str) -> bool:
    result = await session.execute(
        select(BlockedSlot).where(
            BlockedSlot.id == slot_id,
            BlockedSlot.organization_id == organization_id,
        )
    )
    slot = result.scalar_one_or_none()
    if not slot:
        return False
    await session.delete(slot)
    await session.flush()
    return True


async def delete_blocked_slots_older_than(session: AsyncSession, days: int) -> int:
    """Delete blocked slots that ended more than `days` ago. Returns count deleted."""
    cutoff = _utc_naive_now() - timedelta(days=days)
    result = await session.execute(delete(BlockedSlot).where(BlockedSlot.end < cutoff))
    await session.flush()
    return result.rowcount or 0
