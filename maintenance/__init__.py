"""
Maintenance request lifecycle and scheduling.

This package provides the core of the equipment maintenance workflow:
- Status / Stage: the eight request statuses and four board columns
- MaintenanceRequest, Equipment, Team: the records the core works on
- LifecycleEngine: creation, assignment and status transitions
- calculations: next-due dates, overdue checks and SLA deadlines
- board: kanban grouping, card moves and calendar events
- MemoryStore / YamlStore: request store and equipment/team directories
"""

from .status import (
    Status,
    Stage,
    Priority,
    MaintenanceType,
    FrequencyUnit,
    TERMINAL_STATUSES,
    stage_for,
)
from .errors import (
    MaintenanceError,
    NotFound,
    InvalidStatus,
    InvalidTransition,
    InvalidSchedule,
    InvalidRequest,
    VersionConflict,
    ConflictingAssignment,
)
from .team import Team, TeamMember
from .equipment import Equipment, MaintenanceSchedule
from .work_note import WorkNote
from .request import MaintenanceRequest
from .calculations import (
    next_due_date,
    is_overdue,
    maintenance_status,
    sla_deadlines,
    equipment_due_within,
)
from .store import MemoryStore
from .loader import YamlStore, load_schema, create_workspace
from .lifecycle import LifecycleEngine
from .board import (
    BoardSession,
    CalendarEvent,
    TransitionRequest,
    calendar_events,
    classify,
    move_card,
    plan_move,
    stage_counts,
    to_calendar_event,
)

__all__ = [
    "Status",
    "Stage",
    "Priority",
    "MaintenanceType",
    "FrequencyUnit",
    "TERMINAL_STATUSES",
    "stage_for",
    "MaintenanceError",
    "NotFound",
    "InvalidStatus",
    "InvalidTransition",
    "InvalidSchedule",
    "InvalidRequest",
    "VersionConflict",
    "ConflictingAssignment",
    "Team",
    "TeamMember",
    "Equipment",
    "MaintenanceSchedule",
    "WorkNote",
    "MaintenanceRequest",
    "next_due_date",
    "is_overdue",
    "maintenance_status",
    "sla_deadlines",
    "equipment_due_within",
    "MemoryStore",
    "YamlStore",
    "load_schema",
    "create_workspace",
    "LifecycleEngine",
    "BoardSession",
    "CalendarEvent",
    "TransitionRequest",
    "calendar_events",
    "classify",
    "move_card",
    "plan_move",
    "stage_counts",
    "to_calendar_event",
]
