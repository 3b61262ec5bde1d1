"""
Slot Calculator

Turns a coach's recurring weekly availability into bookable slots for a date
range, considering:
- Blocked slots (one-off unavailability)
- Existing events, padded by the buffer
- External calendar busy times, padded by the buffer
- Minimum notice before a slot may still be booked
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from coachslots.scheduling.intervals import (
    day_of_week,
    expand,
    intervals_overlap,
    local_time_to_utc,
    resolve_timezone,
    to_utc,
)
from coachslots.scheduling.types import AvailabilityRules, AvailableSlot, BookedEvent, TimeRange


def calculate_available_slots(
    range_start: datetime,
    range_end: datetime,
    availability: AvailabilityRules,
    existing_events: Sequence[BookedEvent],
    duration_minutes: int,
    buffer_minutes: int,
    external_busy_times: Iterable[TimeRange] = (),
    now: datetime | None = None,
) -> list[AvailableSlot]:
    """
    Compute bookable slots between range_start and range_end.

    Args:
        range_start: start of the query window; only its UTC date is used
        range_end: end of the query window; its UTC date is included.
            Clamping to the advance booking horizon is the caller's job.
        availability: snapshot of the organization's availability settings
        existing_events: events that occupy time
        duration_minutes: length of the call to place
        buffer_minutes: gap required around events and external busy times
        external_busy_times: busy intervals from a connected calendar
        now: reference time for the minimum notice filter (defaults to the clock)

    Returns:
        list[AvailableSlot] in chronological order of construction:
        day, then window, then time. Empty for a non-positive duration.

    Algorithm:
        1. Walk calendar days from range_start's date to range_end's date
        2. For each open window of that weekday (in the coach's timezone),
           step by duration + buffer while a full slot still fits
        3. Drop a candidate if it starts within the notice period, overlaps a
           blocked slot, or overlaps a buffered event or busy interval
    """
    if duration_minutes <= 0:
        return []

    now = to_utc(now) if now is not None else datetime.now(UTC)
    notice_cutoff = now + timedelta(hours=availability.min_notice_hours)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=duration_minutes + buffer_minutes)
    tz = resolve_timezone(availability.timezone)

    blocked = [(to_utc(b.start), to_utc(b.end)) for b in availability.blocked_slots]
    buffered_events = [
        expand(to_utc(e.start), to_utc(e.end_time), buffer_minutes) for e in existing_events
    ]
    buffered_busy = [
        expand(to_utc(b.start), to_utc(b.end), buffer_minutes) for b in external_busy_times
    ]

    slots: list[AvailableSlot] = []
    current_day = to_utc(range_start).date()
    last_day = to_utc(range_end).date()

    while current_day <= last_day:
        for window in availability.weekly_schedule.get(day_of_week(current_day), []):
            window_start = local_time_to_utc(current_day, window.start, tz)
            window_end = local_time_to_utc(current_day, window.end, tz)

            slot_start = window_start
            while slot_start + duration <= window_end:
                slot_end = slot_start + duration

                if slot_start > notice_cutoff and not (
                    _hits_any(slot_start, slot_end, blocked)
                    or _hits_any(slot_start, slot_end, buffered_events)
                    or _hits_any(slot_start, slot_end, buffered_busy)
                ):
                    slots.append(
                        AvailableSlot(start=slot_start, end=slot_end, duration=duration_minutes)
                    )

                slot_start += step

        current_day += timedelta(days=1)

    return slots


def _hits_any(
    slot_start: datetime,
    slot_end: datetime,
    occupied: list[tuple[datetime, datetime]],
) -> bool:
    return any(intervals_overlap(slot_start, slot_end, start, end) for start, end in occupied)
