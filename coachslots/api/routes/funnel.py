import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coachslots.api.deps import get_session
from coachslots.api.schemas.intake import BookIntakeRequest, BookingPublic
from coachslots.api.schemas.scheduling import FunnelSlotsResponse
from coachslots.core.config import settings
from coachslots.models.intake_config import IntakeCallConfig
from coachslots.scheduling.intervals import to_utc
from coachslots.services.availability_service import get_or_create_availability
from coachslots.services.email_service import send_intake_confirmation_email
from coachslots.services.event_service import create_intake_event, find_conflicting_event
from coachslots.services.intake_service import get_intake_config
from coachslots.services.slot_service import parse_date_range, resolve_available_slots

logger = logging.getLogger(__name__)

# Unauthenticated: the organization comes from the intake config
router = APIRouter(prefix="/funnel/scheduling", tags=["funnel"])


async def _get_active_config(session: AsyncSession, config_id: str) -> IntakeCallConfig:
    config = await get_intake_config(session, config_id)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intake config not found",
        )
    if not config.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Intake call is not active",
        )
    return config


@router.get("/slots", response_model=FunnelSlotsResponse)
async def funnel_slots(
    intake_config_id: str | None = Query(None, alias="intakeConfigId"),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    session: AsyncSession = Depends(get_session),
) -> FunnelSlotsResponse:
    """Bookable intake-call slots for a funnel scheduling step."""
    if not intake_config_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="intakeConfigId is required",
        )
    range_start, range_end = parse_date_range(start_date, end_date, settings.max_slot_range_days)

    config = await _get_active_config(session, intake_config_id)
    override = config.custom_weekly_schedule if config.use_custom_availability else None

    resolution = await resolve_available_slots(
        session,
        config.organization_id,
        range_start,
        range_end,
        duration=config.duration,
        weekly_schedule_override=override,
    )
    return FunnelSlotsResponse(slots=resolution.slots, timezone=resolution.timezone)


@router.post("/book", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book_intake_call(
    body: BookIntakeRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
) -> BookingPublic:
    config = await _get_active_config(session, body.intake_call_config_id)
    start, end = to_utc(body.start_datetime), to_utc(body.end_datetime)
    if start <= datetime.now(UTC):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot book a time in the past",
        )
    if end - start != timedelta(minutes=config.duration):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"This intake call is {config.duration} minutes long",
        )
    availability = await get_or_create_availability(session, config.organization_id)

    conflict = await find_conflicting_event(
        session,
        config.organization_id,
        start,
        end,
        availability.buffer_between_calls,
    )
    if conflict:
        logger.info(
            "Intake booking for %s rejected: conflicts with event %s",
            config.id,
            conflict.id,
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This time slot is no longer available. Please select another time.",
        )

    event = await create_intake_event(
        session,
        config,
        start,
        end,
        prospect_name=body.name,
        prospect_email=str(body.email),
        prospect_timezone=body.timezone,
    )
    logger.info("Intake call %s booked for organization %s", event.id, config.organization_id)

    background_tasks.add_task(
        send_intake_confirmation_email,
        to_email=event.prospect_email,
        prospect_name=event.prospect_name or "",
        call_name=config.name,
        start=to_utc(event.start_datetime),
        end=to_utc(event.end_datetime),
        timezone=body.timezone or availability.timezone,
    )
    return BookingPublic(
        event_id=event.id,
        intake_call_config_id=config.id,
        start_datetime=to_utc(event.start_datetime),
        end_datetime=to_utc(event.end_datetime),
        status=event.status,
    )
