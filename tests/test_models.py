"""
Tests for the table models: column types and rows written through the ORM.
"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import DateTime, select

from coachslots.models import BlockedSlot, CoachAvailability, Event, IntakeCallConfig
from coachslots.services.availability_service import get_or_create_availability

from conftest import ORG_ID, run_db


@pytest.mark.parametrize("model", [CoachAvailability, BlockedSlot, Event, IntakeCallConfig])
def test_timestamp_columns_are_naive(model):
    columns = [
        c
        for c in model.__table__.columns
        if c.name.endswith(("_at", "_datetime")) or c.name in ("start", "end")
    ]
    assert columns
    for column in columns:
        assert type(column.type) is DateTime, column.name
        assert column.type.timezone is False, column.name


def test_blocked_slots_cascade_with_availability():
    (fk,) = BlockedSlot.__table__.c.organization_id.foreign_keys
    assert fk.ondelete == "CASCADE"


def test_rows_round_trip_naive_utc(client):
    start = datetime(2026, 2, 2, 15, 0)

    async def write(session):
        await get_or_create_availability(session, ORG_ID)
        config = IntakeCallConfig(organization_id=ORG_ID, name="Discovery call")
        session.add(config)
        session.add(
            Event(
                organization_id=ORG_ID,
                title="Coaching",
                start_datetime=start,
                end_datetime=start + timedelta(hours=1),
            )
        )
        session.add(BlockedSlot(organization_id=ORG_ID, start=start, end=start + timedelta(hours=2)))
        await session.flush()

    run_db(write)

    async def read(session):
        event = (await session.execute(select(Event))).scalar_one()
        blocked = (await session.execute(select(BlockedSlot))).scalar_one()
        config = (await session.execute(select(IntakeCallConfig))).scalar_one()
        return event, blocked, config

    event, blocked, config = run_db(read)
    assert event.start_datetime == start
    assert event.end_datetime == start + timedelta(hours=1)
    assert blocked.end == start + timedelta(hours=2)
    assert config.created_at.tzinfo is None
    assert config.created_at <= datetime.now(UTC).replace(tzinfo=None)
