import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.api.deps import get_session, require_coach, require_organization
from coachslots.api.schemas.scheduling import (
    AvailabilityPublic,
    AvailabilityUpdate,
    AvailableSlotsResponse,
    BlockedSlotCreate,
    BlockedSlotPublic,
    weekly_schedule_to_json,
)
from coachslots.core.config import settings
from coachslots.core.security import Principal
from coachslots.models.availability import BlockedSlot, CoachAvailability
from coachslots.scheduling.intervals import to_utc
from coachslots.services.availability_service import (
    add_blocked_slot,
    get_or_create_availability,
    list_blocked_slots,
    remove_blocked_slot,
    update_availability,
)
from coachslots.services.slot_service import (
    parse_date_range,
    parse_duration,
    resolve_available_slots,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/scheduling", tags=["scheduling"])


def _blocked_to_public(slot: BlockedSlot) -> BlockedSlotPublic:
    return BlockedSlotPublic(
        id=slot.id,
        start=to_utc(slot.start),
        end=to_utc(slot.end),
        reason=slot.reason,
    )


def _to_public(availability: CoachAvailability, blocked: list[BlockedSlot]) -> AvailabilityPublic:
    return AvailabilityPublic(
        organization_id=availability.organization_id,
        coach_user_id=availability.coach_user_id,
        weekly_schedule=availability.weekly_schedule,
        blocked_slots=[_blocked_to_public(b) for b in blocked],
        default_duration=availability.default_duration,
        buffer_between_calls=availability.buffer_between_calls,
        timezone=availability.timezone,
        advance_booking_days=availability.advance_booking_days,
        min_notice_hours=availability.min_notice_hours,
        sync_external_busy=availability.sync_external_busy,
        push_events_to_calendar=availability.push_events_to_calendar,
        external_calendar_id=availability.external_calendar_id,
        created_at=to_utc(availability.created_at),
        updated_at=to_utc(availability.updated_at),
    )


@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def available_slots(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    duration: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_organization),
) -> AvailableSlotsResponse:
    """Bookable slots for the caller's organization. Client-facing: any member may call it."""
    range_start, range_end = parse_date_range(start_date, end_date, settings.max_slot_range_days)
    duration_minutes = parse_duration(duration)

    resolution = await resolve_available_slots(
        session,
        principal.organization_id,
        range_start,
        range_end,
        duration=duration_minutes,
    )
    return AvailableSlotsResponse(
        slots=resolution.slots,
        timezone=resolution.timezone,
        duration=resolution.duration,
        buffer=resolution.buffer,
    )


@router.get("/availability", response_model=AvailabilityPublic)
async def get_my_availability(
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> AvailabilityPublic:
    availability = await get_or_create_availability(
        session, principal.organization_id, coach_user_id=principal.user_id
    )
    blocked = await list_blocked_slots(session, principal.organization_id)
    return _to_public(availability, blocked)


@router.put("/availability", response_model=AvailabilityPublic)
async def update_my_availability(
    body: AvailabilityUpdate,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> AvailabilityPublic:
    # Only external_calendar_id may be cleared with an explicit null
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "external_calendar_id"
    }
    if body.weekly_schedule is not None:
        changes["weekly_schedule"] = weekly_schedule_to_json(body.weekly_schedule)
    availability = await update_availability(session, principal.organization_id, changes)
    logger.info(
        "Availability updated for %s by %s: %s",
        principal.organization_id,
        principal.user_id,
        sorted(changes),
    )
    blocked = await list_blocked_slots(session, principal.organization_id)
    return _to_public(availability, blocked)


@router.post(
    "/availability/blocked-slots",
    response_model=BlockedSlotPublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_blocked_slot(
    body: BlockedSlotCreate,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> BlockedSlotPublic:
    slot = await add_blocked_slot(
        session, principal.organization_id, body.start, body.end, reason=body.reason
    )
    return _blocked_to_public(slot)


@router.delete("/availability/blocked-slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blocked_slot(
    slot_id: str,
    session: AsyncSession = Depends(get_session),
    principal: Principal = Depends(require_coach),
) -> None:
    ok = await remove_blocked_slot(session, principal.organization_id, slot_id)
    if not ok:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Blocked slot not found",
        )
