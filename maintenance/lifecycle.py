"""LifecycleEngine - the authoritative state machine for request status."""

import logging
import warnings
from datetime import datetime
from typing import Optional, Union

from .errors import (
    ConflictingAssignment,
    InvalidRequest,
    InvalidSchedule,
    InvalidStatus,
    InvalidTransition,
    NotFound,
)
from .request import MaintenanceRequest
from .status import MaintenanceType, Priority, Status
from .work_note import WorkNote

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 1000
MAX_HOURS_PER_NOTE = 24


def parse_status(value: Union[Status, str]) -> Status:
    """Coerce a status value or name, raising InvalidStatus when unknown."""
    if isinstance(value, Status):
        return value
    try:
        return Status(value)
    except ValueError:
        raise InvalidStatus(f"Unknown status '{value}'") from None


def _parse_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidRequest(f"Unknown {label} '{value}'") from None


class LifecycleEngine:
    """
    Creates requests and moves them between statuses.

    Rules:
    - New requests always start as New
    - Completed, Cancelled and Rejected are terminal: nothing leaves them
    - Any non-terminal request may move to any status
    - Entering a terminal status stamps closed_at; Completed also stamps
      completed_at and reschedules recurring maintenance on the equipment
    - Team comes from the equipment default unless set explicitly
    """

    def __init__(self, store):
        self.store = store

    # -------------------------------------------------------------------------
    # Creation and assignment
    # -------------------------------------------------------------------------

    def create_request(
        self,
        equipment_id: str,
        type: Union[MaintenanceType, str],
        priority: Union[Priority, str],
        scheduled_date: Optional[datetime],
        description: str = "",
        title: str = "",
        created_by: Optional[str] = None,
        team_id: Optional[str] = None,
        assigned_to_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        due_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> MaintenanceRequest:
        """Create a New request, filling the team from the equipment default."""
        now = now or datetime.now()
        equipment = self.store.get_equipment(equipment_id)
        mtype = _parse_enum(MaintenanceType, type, "maintenance type")
        prio = _parse_enum(Priority, priority, "priority")
        if scheduled_date is None:
            raise InvalidRequest("Scheduled date is required")
        if duration_minutes is not None and (
            isinstance(duration_minutes, bool)
            or not isinstance(duration_minutes, int)
            or duration_minutes <= 0
        ):
            raise InvalidRequest("Duration must be a positive number of minutes")

        if team_id is not None:
            self.store.get_team(team_id)
            self._warn_on_conflict(team_id, equipment.default_team_id, equipment_id)

        request = MaintenanceRequest(
            id=self.store.new_request_id(),
            request_number=self.store.next_request_number(now),
            equipment_id=equipment.id,
            type=mtype,
            priority=prio,
            scheduled_date=scheduled_date,
            created_at=now,
            title=title or description[:200],
            description=description,
            status=Status.NEW,
            team_id=team_id if team_id is not None else equipment.default_team_id,
            team_explicit=team_id is not None,
            assigned_to_id=assigned_to_id,
            created_by_id=created_by,
            duration_minutes=duration_minutes,
            due_date=due_date,
        )
        created = self.store.add_request(request)
        logger.info(
            "Created %s (%s) for equipment %s, team %s",
            created.request_number, created.id, equipment_id, created.team_id,
        )
        return created

    def change_equipment(
        self, request_id: str, equipment_id: str
    ) -> MaintenanceRequest:
        """Point a request at other equipment, re-resolving an implicit team."""
        request = self.store.get_request(request_id)
        equipment = self.store.get_equipment(equipment_id)
        request.equipment_id = equipment.id
        if not request.team_explicit:
            request.team_id = equipment.default_team_id
        else:
            self._warn_on_conflict(request.team_id, equipment.default_team_id, equipment_id)
        return self.store.update_request(request)

    def set_team(self, request_id: str, team_id: str) -> MaintenanceRequest:
        """Explicitly choose a team; later equipment changes keep it."""
        request = self.store.get_request(request_id)
        self.store.get_team(team_id)
        equipment = self.store.get_equipment(request.equipment_id)
        self._warn_on_conflict(team_id, equipment.default_team_id, equipment.id)
        request.team_id = team_id
        request.team_explicit = True
        return self.store.update_request(request)

    def assign(
        self,
        request_id: str,
        technician_id: Optional[str] = None,
        team_id: Optional[str] = None,
        actor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MaintenanceRequest:
        """Assign a technician and/or team and move the request to Assigned."""
        request = self.store.get_request(request_id)
        self._check_open(request, Status.ASSIGNED)
        if team_id is not None:
            self.store.get_team(team_id)
            request.team_id = team_id
            request.team_explicit = True
        if technician_id is not None:
            if request.team_id is not None:
                team = self.store.get_team(request.team_id)
                if team.members and not team.has_member(technician_id):
                    raise InvalidRequest(
                        f"Technician '{technician_id}' is not a member of team '{team.name}'"
                    )
            request.assigned_to_id = technician_id
        return self._apply_status(request, Status.ASSIGNED, actor, now or datetime.now())

    def add_work_note(
        self,
        request_id: str,
        technician_id: str,
        note: str,
        hours_worked: float = 0,
        now: Optional[datetime] = None,
    ) -> MaintenanceRequest:
        """Append a work-log entry; allowed in any status."""
        if not technician_id:
            raise InvalidRequest("Technician is required for a work note")
        if not note or not isinstance(note, str):
            raise InvalidRequest("Work note text is required")
        if len(note) > MAX_NOTE_LENGTH:
            raise InvalidRequest(f"Note cannot exceed {MAX_NOTE_LENGTH} characters")
        if (
            isinstance(hours_worked, bool)
            or not isinstance(hours_worked, (int, float))
            or not 0 <= hours_worked <= MAX_HOURS_PER_NOTE
        ):
            raise InvalidRequest(f"Hours worked must be between 0 and {MAX_HOURS_PER_NOTE}")
        request = self.store.get_request(request_id)
        request.work_notes.append(
            WorkNote(
                technician_id=technician_id,
                note=note,
                timestamp=now or datetime.now(),
                hours_worked=hours_worked,
            )
        )
        return self.store.update_request(request)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def transition(
        self,
        request_id: str,
        target_status: Union[Status, str],
        actor: Optional[str] = None,
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequest:
        """
        Move a request to target_status.

        Raises NotFound, InvalidStatus, InvalidTransition (request is closed)
        or VersionConflict (expected_version no longer current). Nothing is
        written when any of them is raised.
        """
        request = self.store.get_request(request_id)
        target = parse_status(target_status)
        self._check_open(request, target)
        return self._apply_status(
            request, target, actor, now or datetime.now(), expected_version
        )

    def _check_open(self, request: MaintenanceRequest, target: Status) -> None:
        if request.status.is_terminal:
            logger.warning(
                "Rejected %s -> %s on %s: request is closed",
                request.status.value, target.value, request.id,
            )
            raise InvalidTransition(
                f"Request '{request.id}' is {request.status.value} "
                f"and cannot move to {target.value}"
            )

    def _apply_status(
        self,
        request: MaintenanceRequest,
        target: Status,
        actor: Optional[str],
        now: datetime,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequest:
        if target is Status.COMPLETED:
            self.store.get_equipment(request.equipment_id).schedule.validate()
        previous = request.status
        request.status = target
        if target is Status.IN_PROGRESS and request.actual_start_date is None:
            request.actual_start_date = now
        if target.is_terminal:
            request.closed_at = now
        if target is Status.COMPLETED:
            request.completed_at = now

        updated = self.store.update_request(request, expected_version)
        logger.info(
            "Request %s: %s -> %s by %s",
            updated.id, previous.value, target.value, actor or "unknown",
        )
        if target is Status.COMPLETED:
            self._reschedule_equipment(updated.equipment_id, now)
        return updated

    def _reschedule_equipment(self, equipment_id: str, now: datetime) -> None:
        equipment = self.store.get_equipment(equipment_id)
        if not equipment.has_recurring_schedule:
            return
        equipment.last_maintenance_date = now
        equipment.next_maintenance_date = equipment.schedule.next_due(now)
        self.store.update_equipment(equipment)
        logger.info(
            "Equipment %s next maintenance due %s",
            equipment.id, equipment.next_maintenance_date.isoformat(),
        )

    # -------------------------------------------------------------------------
    # Scheduling queries
    # -------------------------------------------------------------------------

    def compute_next_due(
        self, equipment_id: str, now: Optional[datetime] = None
    ) -> datetime:
        """
        Current due date for an equipment's recurring schedule.

        Computed from the last maintenance date, or from now when the
        equipment has never been maintained.
        """
        equipment = self.store.get_equipment(equipment_id)
        if not equipment.has_recurring_schedule:
            raise InvalidSchedule(
                f"Equipment '{equipment_id}' has no recurring schedule enabled"
            )
        base = equipment.last_maintenance_date or now or datetime.now()
        return equipment.schedule.next_due(base)

    def is_overdue(self, request_id: str, now: datetime) -> bool:
        return self.store.get_request(request_id).is_overdue(now)

    @staticmethod
    def _warn_on_conflict(
        team_id: Optional[str], default_team_id: Optional[str], equipment_id: str
    ) -> None:
        if team_id is None or default_team_id is None or team_id == default_team_id:
            return
        message = (
            f"Team '{team_id}' differs from equipment {equipment_id} "
            f"default team '{default_team_id}'; keeping '{team_id}'"
        )
        logger.warning(message)
        warnings.warn(ConflictingAssignment(message), stacklevel=3)
