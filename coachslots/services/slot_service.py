import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.scheduling.calculator import calculate_available_slots
from coachslots.scheduling.intervals import to_utc
from coachslots.scheduling.types import AvailabilityRules, AvailableSlot, TimeRange
from coachslots.services import calendar_service
from coachslots.services.availability_service import get_availability_rules
from coachslots.services.event_service import list_occupying_events, to_booked_event

logger = logging.getLogger(__name__)

MAX_DURATION_MINUTES = 24 * 60

# Events are fetched a day either side of the range: the first day's windows
# start before range_start and the last day's may end after range_end.
_EVENT_LOOKAROUND = timedelta(days=1)


class InvalidQuery(ValueError):
    """Bad query parameters; the message is safe to show to the caller."""


@dataclass
class SlotResolution:
    slots: list[AvailableSlot]
    timezone: str
    duration: int
    buffer: int


def parse_iso_datetime(value: str) -> datetime:
    """ISO-8601 date or datetime; values without an offset are taken as UTC."""
    return to_utc(datetime.fromisoformat(value.strip()))


def parse_date_range(
    start_param: str | None, end_param: str | None, max_range_days: int
) -> tuple[datetime, datetime]:
    if not start_param or not end_param:
        raise InvalidQuery("startDate and endDate are required")
    try:
        range_start = parse_iso_datetime(start_param)
        range_end = parse_iso_datetime(end_param)
    except ValueError:
        raise InvalidQuery("Invalid date format. Use ISO 8601 format.") from None
    if range_end < range_start:
        raise InvalidQuery("endDate must not be before startDate")
    if range_end - range_start > timedelta(days=max_range_days):
        raise InvalidQuery(f"Date range cannot exceed {max_range_days} days")
    return range_start, range_end


def parse_duration(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        duration = int(value)
    except ValueError:
        raise InvalidQuery("duration must be a whole number of minutes") from None
    if duration <= 0 or duration > MAX_DURATION_MINUTES:
        raise InvalidQuery(f"duration must be between 1 and {MAX_DURATION_MINUTES} minutes")
    return duration


def clamp_to_booking_horizon(range_end: datetime, advance_booking_days: int, now: datetime) -> datetime:
    return min(to_utc(range_end), to_utc(now) + timedelta(days=advance_booking_days))


async def get_external_busy_or_empty(
    rules: AvailabilityRules, start: datetime, end: datetime
) -> list[TimeRange]:
    """Busy times from the connected calendar; any failure means "none"."""
    if not (rules.sync_external_busy and rules.external_calendar_id):
        return []
    try:
        return await calendar_service.fetch_busy_times(rules.external_calendar_id, start, end)
    except Exception as e:
        logger.warning(
            "Failed to fetch external busy times for calendar %s: %s",
            rules.external_calendar_id,
            e,
        )
        return []


async def resolve_available_slots(
    session: AsyncSession,
    organization_id: str,
    range_start: datetime,
    range_end: datetime,
    duration: int | None = None,
    weekly_schedule_override: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> SlotResolution:
    """Load what the calculator needs for an organization and run it."""
    now = to_utc(now) if now is not None else datetime.now(UTC)
    rules = await get_availability_rules(session, organization_id, weekly_schedule_override)
    duration = duration or rules.default_duration
    buffer = rules.buffer_between_calls

    effective_end = clamp_to_booking_horizon(range_end, rules.advance_booking_days, now)
    if effective_end < range_start:
        return SlotResolution(slots=[], timezone=rules.timezone, duration=duration, buffer=buffer)

    events, busy = await asyncio.gather(
        list_occupying_events(
            session, organization_id, range_start - _EVENT_LOOKAROUND, effective_end + _EVENT_LOOKAROUND
        ),
        get_external_busy_or_empty(rules, range_start, effective_end),
    )

    slots = calculate_available_slots(
        range_start,
        effective_end,
        rules,
        [to_booked_event(e) for e in events],
        duration,
        buffer,
        busy,
        now=now,
    )
    logger.debug(
        "Resolved %d slot(s) for %s between %s and %s",
        len(slots),
        organization_id,
        range_start.isoformat(),
        effective_end.isoformat(),
    )
    return SlotResolution(slots=slots, timezone=rules.timezone, duration=duration, buffer=buffer)
