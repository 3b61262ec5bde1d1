from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.models.intake_config import IntakeCallConfig


async def get_intake_config(session: AsyncSession, config_id: str) -> IntakeCallConfig | None:
    result = await session.execute(select(IntakeCallConfig).where(IntakeCallConfig.id == config_id))
    return result.scalar_one_or_none()


async def list_intake_configs(session: AsyncSession, organization_id: str) -> list[IntakeCallConfig]:
    result = await session.execute(
        select(IntakeCallConfig)
        .where(IntakeCallConfig.organization_id == organization_id)
        .order_by(IntakeCallConfig.created_at)
    )
    return list(result.scalars().all())


async def create_intake_config(
    session: AsyncSession, organization_id: str, data: dict[str, Any]
) -> IntakeCallConfig:
    config = IntakeCallConfig(organization_id=organization_id, **data)
    session.add(config)
    await session.flush()
    await session.refresh(config)
    return config


async def update_intake_config(
    session: AsyncSession, organization_id: str, config_id: str, changes: dict[str, Any]
) -> IntakeCallConfig | None:
    config = await get_intake_config(session, config_id)
    if not config or config.organization_id != organization_id:
        return None
    for key, value in changes.items():
        setattr(config, key, value)
    config.updated_at = datetime.now(UTC).replace(tzinfo=None)
    session.add(config)
    await session.flush()
    await session.refresh(config)
    return config
