from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.models.event import Event
from coachslots.models.intake_config import IntakeCallConfig
from coachslots.scheduling.intervals import expand, intervals_overlap, to_naive_utc, to_utc
from coachslots.scheduling.types import BookedEvent

# Statuses that take the coach's time
OCCUPYING_STATUSES = ("confirmed", "pending_response", "proposed")

# Widest window around a booking in which a conflicting event may start
_CONFLICT_LOOKAROUND = timedelta(hours=24)


def to_booked_event(event: Event) -> BookedEvent:
    return BookedEvent(
        start=to_utc(event.start_datetime),
        end=to_utc(event.end_datetime) if event.end_datetime else None,
        duration_minutes=event.duration_minutes,
    )


async def list_occupying_events(
    session: AsyncSession, organization_id: str, start: datetime, end: datetime
) -> list[Event]:
    """Events starting within [start, end] whose status occupies time."""
    result = await session.execute(
        select(Event)
        .where(
            Event.organization_id == organization_id,
            Event.start_datetime >= to_naive_utc(start),
            Event.start_datetime <= to_naive_utc(end),
            Event.status.in_(OCCUPYING_STATUSES),
        )
        .order_by(Event.start_datetime)
    )
    return list(result.scalars().all())


async def find_conflicting_event(
    session: AsyncSession,
    organization_id: str,
    start: datetime,
    end: datetime,
    buffer_minutes: int,
) -> Event | None:
    """First occupying event whose buffered interval overlaps [start, end)."""
    start, end = to_utc(start), to_utc(end)
    candidates = await list_occupying_events(
        session, organization_id, start - _CONFLICT_LOOKAROUND, end + _CONFLICT_LOOKAROUND
    )
    for event in candidates:
        booked = to_booked_event(event)
        buffered_start, buffered_end = expand(booked.start, booked.end_time, buffer_minutes)
        if intervals_overlap(start, end, buffered_start, buffered_end):
            return event
    return None


async def create_intake_event(
    session: AsyncSession,
    config: IntakeCallConfig,
    start: datetime,
    end: datetime,
    prospect_name: str,
    prospect_email: str,
    prospect_timezone: str | None = None,
) -> Event:
    event = Event(
        organization_id=config.organization_id,
        title=config.name,
        start_datetime=to_naive_utc(start),
        end_datetime=to_naive_utc(end),
        duration_minutes=config.duration,
        status="confirmed",
        event_type="intake_call",
        intake_call_config_id=config.id,
        prospect_name=prospect_name.strip(),
        prospect_email=prospect_email.lower().strip(),
        prospect_timezone=prospect_timezone,
    )
    session.add(event)
    await session.flush()
    await session.refresh(event)
    return event
