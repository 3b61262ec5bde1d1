"""
Interval helpers shared by the slot calculator and booking checks.
"""

import logging
import re
from datetime import UTC, date, datetime, time, timedelta

import pytz

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """
    True when [a_start, a_end) intersects [b_start, b_end), including containment.

    The three clauses are: a starts inside b, a ends inside b, a covers b.
    Touching endpoints do not count as overlap.
    """
    return (
        (a_start >= b_start and a_start < b_end)
        or (a_end > b_start and a_end <= b_end)
        or (a_start <= b_start and a_end >= b_end)
    )


def expand(start: datetime, end: datetime, minutes: int) -> tuple[datetime, datetime]:
    """Widen an interval by `minutes` on both sides."""
    pad = timedelta(minutes=minutes)
    return start - pad, end + pad


def to_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken as UTC (that is how they are stored)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return to_utc(dt).replace(tzinfo=None)


def parse_clock(value: str) -> timedelta:
    """
    Parse a wall-clock "HH:MM" into an offset from midnight.

    "24:00" is accepted and means the end of the day.
    """
    match = _CLOCK_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        raise ValueError(f"Invalid time of day: {value!r}")
    return timedelta(hours=hours, minutes=minutes)


def resolve_timezone(name: str | None) -> pytz.tzinfo.BaseTzInfo:
    if not name:
        return pytz.UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, using UTC", name)
        return pytz.UTC


def local_time_to_utc(day: date, clock: str, tz: pytz.tzinfo.BaseTzInfo) -> datetime:
    """Wall-clock `clock` on `day` in `tz`, as an aware UTC datetime."""
    naive = datetime.combine(day, time.min) + parse_clock(clock)
    return tz.localize(naive).astimezone(UTC)


def day_of_week(day: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (day.weekday() + 1) % 7
