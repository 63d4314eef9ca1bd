"""Status, stage and related enums for maintenance requests."""

from enum import Enum
from typing import Dict


class Status(Enum):
    """Lifecycle status of a maintenance request."""

    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    WAITING_FOR_PARTS = "Waiting for Parts"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def stage(self) -> "Stage":
        return STATUS_TO_STAGE[self]


class Stage(Enum):
    """Board column a status is displayed in."""

    NEW = "new"
    IN_PROGRESS = "in-progress"
    REPAIRED = "repaired"
    SCRAP = "scrap"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.REPAIRED, Stage.SCRAP)


class Priority(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"
    EMERGENCY = "Emergency"


class MaintenanceType(Enum):
    CORRECTIVE = "Corrective"
    PREVENTIVE = "Preventive"
    PREDICTIVE = "Predictive"
    EMERGENCY = "Emergency"


class FrequencyUnit(Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


TERMINAL_STATUSES = frozenset(
    {Status.COMPLETED, Status.CANCELLED, Status.REJECTED}
)

STATUS_TO_STAGE: Dict[Status, Stage] = {
    Status.NEW: Stage.NEW,
    Status.ASSIGNED: Stage.IN_PROGRESS,
    Status.IN_PROGRESS: Stage.IN_PROGRESS,
    Status.WAITING_FOR_PARTS: Stage.IN_PROGRESS,
    Status.ON_HOLD: Stage.IN_PROGRESS,
    Status.COMPLETED: Stage.REPAIRED,
    Status.CANCELLED: Stage.SCRAP,
    Status.REJECTED: Stage.SCRAP,
}

# The only statuses a board move may write back.
STAGE_TO_STATUS: Dict[Stage, Status] = {
    Stage.NEW: Status.NEW,
    Stage.IN_PROGRESS: Status.IN_PROGRESS,
    Stage.REPAIRED: Status.COMPLETED,
    Stage.SCRAP: Status.CANCELLED,
}


def stage_for(status: Status) -> Stage:
    """Map a status to its board stage."""
    return STATUS_TO_STAGE[status]
