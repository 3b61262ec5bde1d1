from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.api.deps import get_session, require_coach
from coachslots.api.schemas.intake import IntakeConfigCreate, IntakeConfigPublic, IntakeConfigUpdate
from coachslots.core.security import Principal
from coachslots.models.intake_config import IntakeCallConfig
from coachslots.scheduling.intervals import to_utc
from coachslots.services.intake_service import (
    create_intake_config,
    list_intake_configs,
    update_intake_config,
)

router = APIRouter(prefix="/coach/intake-configs", tags=["intake"])

_NULLABLE_FIELDS = ("description", "custom_weekly_schedule")


def _to_public(c: IntakeCallConfig) -> IntakeConfigPublic:
    return IntakeConfigPublic(
        id=c.id,
        organization_id=c.organization_id,
        name=c.name,
        description=c.description,
        duration=c.duration,
        is_active=c.is_active,
        use_custom_availability=c.use_custom_availability,
        custom_weekly_schedule=c.custom_weekly_schedule,
        created_at=to_utc(c.created_at),
        updated_at=to_utc(c.updated_at),
    )


def _to_columns(data: dict) -> dict:
    if data.get("custom_weekly_schedule") is not None:
        data["custom_weekly_schedule"] = {
            str(day): windows for day, windows in data["custom_weekly_schedule"].items()
        }
    return data


@router.get("", response_model=list[IntakeConfigPublic])
async def list_my_intake_configs(
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> list[IntakeConfigPublic]:
    configs = await list_intake_configs(session, principal.organization_id)
    return [_to_public(c) for c in configs]


@router.post("", response_model=IntakeConfigPublic, status_code=status.HTTP_201_CREATED)
async def create_my_intake_config(
    body: IntakeConfigCreate,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> IntakeConfigPublic:
    config = await create_intake_config(session, principal.organization_id, _to_columns(body.model_dump()))
    return _to_public(config)


@router.patch("/{config_id}", response_model=IntakeConfigPublic)
async def update_my_intake_config(
    config_id: str,
    body: IntakeConfigUpdate,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> IntakeConfigPublic:
    changes = _to_columns({
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    })
    config = await update_intake_config(session, principal.organization_id, config_id, changes)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intake config not found",
        )
    return _to_public(config)
