"""MaintenanceRequest class - the record moved through the lifecycle."""

from datetime import datetime
from typing import List, Optional

from .calculations import is_overdue, sla_deadlines
from .status import MaintenanceType, Priority, Stage, Status
from .work_note import WorkNote


class MaintenanceRequest:
    """A maintenance request against one piece of equipment."""

    def __init__(
        self,
        id: str,
        equipment_id: str,
        type: MaintenanceType,
        priority: Priority,
        scheduled_date: Optional[datetime],
        created_at: datetime,
        title: str = "",
        description: str = "",
        status: Status = Status.NEW,
        request_number: Optional[str] = None,
        team_id: Optional[str] = None,
        team_explicit: bool = False,
        assigned_to_id: Optional[str] = None,
        created_by_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        due_date: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        closed_at: Optional[datetime] = None,
        actual_start_date: Optional[datetime] = None,
        work_notes: Optional[List[WorkNote]] = None,
        version: int = 0,
    ):
        self.id = id
        self.equipment_id = equipment_id
        self.type = type
        self.priority = priority
        self.scheduled_date = scheduled_date
        self.created_at = created_at
        self.title = title
        self.description = description
        self.status = status
        self.request_number = request_number
        self.team_id = team_id
        self.team_explicit = team_explicit
        self.assigned_to_id = assigned_to_id
        self.created_by_id = created_by_id
        self.duration_minutes = duration_minutes
        self.due_date = due_date
        self.completed_at = completed_at
        self.closed_at = closed_at
        self.actual_start_date = actual_start_date
        self.work_notes = work_notes or []
        self.version = version

    def __repr__(self) -> str:
        return f"MaintenanceRequest({self.id!r}, {self.status.value!r})"

    @property
    def stage(self) -> Stage:
        return self.status.stage

    @property
    def is_closed(self) -> bool:
        return self.status.is_terminal

    @property
    def due(self) -> Optional[datetime]:
        """Timestamp overdue checks run against."""
        return self.scheduled_date or self.due_date

    def is_overdue(self, now: datetime) -> bool:
        return is_overdue(self.due, self.stage, now)

    @property
    def response_deadline(self) -> datetime:
        return sla_deadlines(self.priority, self.created_at)[0]

    @property
    def resolution_deadline(self) -> datetime:
        return sla_deadlines(self.priority, self.created_at)[1]

    def is_sla_breached(self, now: datetime) -> bool:
        """Resolution deadline passed without the request being closed."""
        if self.closed_at is not None:
            return self.closed_at > self.resolution_deadline
        return now > self.resolution_deadline

    @property
    def total_hours_worked(self) -> float:
        return sum(n.hours_worked or 0 for n in self.work_notes)

    def copy(self) -> "MaintenanceRequest":
        """Shallow copy with its own work-note list."""
        clone = MaintenanceRequest.__new__(MaintenanceRequest)
        clone.__dict__.update(self.__dict__)
        clone.work_notes = list(self.work_notes)
        return clone
