from coachslots.models.availability import BlockedSlot, CoachAvailability
from coachslots.models.event import Event
from coachslots.models.intake_config import IntakeCallConfig

__all__ = [
    "BlockedSlot",
    "CoachAvailability",
    "Event",
    "IntakeCallConfig",
]
