"""
Pytest configuration and shared fixtures.

Settings are read at import time, so the environment is prepared before any
coachslots module is imported.
"""

import asyncio
import os
import tempfile
from datetime import UTC, date, datetime, timedelta

_TMP_DIR = tempfile.mkdtemp(prefix="coachslots-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["EXTERNAL_CALENDAR_URL"] = "http://calendar.test/busy-times"
os.environ["SMTP_HOST"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from coachslots.core.db import async_session_maker, drop_db  # noqa: E402
from coachslots.core.security import create_access_token  # noqa: E402
from coachslots.main import app  # noqa: E402

ORG_ID = "org_test"
OTHER_ORG_ID = "org_other"


def run_db(fn):
    """Run `await fn(session)` in a committed session and return its result."""

    async def _run():
        async with async_session_maker() as session:
            result = await fn(session)
            await session.commit()
            return result

    return asyncio.run(_run())


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def every_day(start: str, end: str) -> dict[str, list[dict[str, str]]]:
    return {str(day): [{"start": start, "end": end}] for day in range(7)}


@pytest.fixture
def client():
    asyncio.run(drop_db())
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    asyncio.run(drop_db())


@pytest.fixture
def coach_token() -> str:
    return create_access_token("user_coach", organization_id=ORG_ID, role="super_coach")


@pytest.fixture
def member_token() -> str:
    return create_access_token("user_client", organization_id=ORG_ID, role="member")


@pytest.fixture
def no_org_token() -> str:
    return create_access_token("user_lonely")


@pytest.fixture
def target_day() -> date:
    """A day far enough ahead to clear the default 24h notice and inside the 30-day horizon."""
    return (datetime.now(UTC) + timedelta(days=7)).date()


@pytest.fixture
def utc_hourly_availability(client, coach_token):
    """Every day open 09:00-10:00 UTC, no notice period."""
    resp = client.put(
        "/api/scheduling/availability",
        json={
            "weekly_schedule": every_day("09:00", "10:00"),
            "timezone": "UTC",
            "min_notice_hours": 0,
            "default_duration": 60,
            "buffer_between_calls": 15,
            "sync_external_busy": False,
        },
        headers=auth(coach_token),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()
