import logging
from datetime import datetime

import httpx

from coachslots.core.config import settings
from coachslots.scheduling.intervals import to_utc
from coachslots.scheduling.types import TimeRange

logger = logging.getLogger(__name__)


class ExternalCalendarError(Exception):
    """The external calendar service could not be reached or answered badly."""


async def fetch_busy_times(calendar_id: str, start: datetime, end: datetime) -> list[TimeRange]:
    """
    Fetch busy intervals from the connected external calendar.

    Raises ExternalCalendarError (or httpx errors) on failure; callers decide
    whether a failure is fatal.
    """
    if not settings.external_calendar_enabled:
        raise ExternalCalendarError("External calendar URL not configured")
    params = {
        "calendarId": calendar_id,
        "startDate": to_utc(start).isoformat(),
        "endDate": to_utc(end).isoformat(),
    }
    headers = {"Content-Type": "application/json"}
    if settings.external_calendar_api_key:
        headers["Authorization"] = f"Bearer {settings.external_calendar_api_key}"
    async with httpx.AsyncClient(timeout=settings.external_calendar_timeout_seconds) as client:
        resp = await client.get(settings.external_calendar_url, params=params, headers=headers)
        if resp.status_code != 200:
            raise ExternalCalendarError(
                f"Busy-times request failed: status={resp.status_code} body={resp.text[:200]}"
            )
        data = resp.json()
    busy = [TimeRange(start=b["start"], end=b["end"]) for b in data.get("busyTimes") or []]
    logger.debug("Fetched %d busy interval(s) for calendar %s", len(busy), calendar_id)
    return busy
