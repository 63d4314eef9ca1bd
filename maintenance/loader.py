"""YAML loading and saving utilities for maintenance workspaces."""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dateutil import tz
from dateutil.parser import isoparse
from jsonschema import validate

from .equipment import Equipment, MaintenanceSchedule
from .request import MaintenanceRequest
from .status import MaintenanceType, Priority, Status
from .store import MemoryStore
from .team import Team, TeamMember
from .work_note import WorkNote

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


def load_schema() -> dict:
    """Load the JSON schema for workspace files."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def naive_utc(value: datetime) -> datetime:
    """Drop the offset from an aware timestamp, converting it to UTC first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz.UTC).replace(tzinfo=None)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Accept YAML timestamps, dates or ISO strings.

    All timestamps are kept naive; values with an offset become naive UTC.
    Raises ValueError for a string that is not ISO 8601.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return naive_utc(isoparse(str(value)))


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _omit_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# dict -> object
# =============================================================================


def _equipment_from_dict(dct: Dict[str, Any]) -> Equipment:
    sched = dct.get("maintenanceSchedule") or {}
    schedule = MaintenanceSchedule(
        sched.get("enabled", False),
        sched.get("interval"),
        sched.get("frequency"),
        sched.get("type", MaintenanceType.PREVENTIVE.value),
    )
    return Equipment(
        dct["id"],
        dct["name"],
        dct.get("defaultTeam"),
        schedule,
        parse_timestamp(dct.get("lastMaintenanceDate")),
        parse_timestamp(dct.get("nextMaintenanceDate")),
        dct.get("category"),
    )


def _team_from_dict(dct: Dict[str, Any]) -> Team:
    members = [
        TeamMember(m["user"], m.get("role", "junior")) for m in dct.get("members") or []
    ]
    return Team(dct["id"], dct["name"], dct.get("specialization"), members)


def _request_from_dict(dct: Dict[str, Any]) -> MaintenanceRequest:
    notes = [
        WorkNote(
            technician_id=n["technician"],
            note=n["note"],
            timestamp=parse_timestamp(n["timestamp"]),
            hours_worked=n.get("hoursWorked", 0),
        )
        for n in dct.get("workNotes") or []
    ]
    return MaintenanceRequest(
        id=dct["id"],
        equipment_id=dct["equipment"],
        type=MaintenanceType(dct["type"]),
        priority=Priority(dct.get("priority", Priority.MEDIUM.value)),
        scheduled_date=parse_timestamp(dct.get("scheduledDate")),
        created_at=parse_timestamp(dct["createdAt"]),
        title=dct.get("title", ""),
        description=dct.get("description", ""),
        status=Status(dct.get("status", Status.NEW.value)),
        request_number=dct.get("requestNumber"),
        team_id=dct.get("team"),
        team_explicit=dct.get("teamExplicit", False),
        assigned_to_id=dct.get("assignedTo"),
        created_by_id=dct.get("createdBy"),
        duration_minutes=dct.get("durationMinutes"),
        due_date=parse_timestamp(dct.get("dueDate")),
        completed_at=parse_timestamp(dct.get("completedAt")),
        closed_at=parse_timestamp(dct.get("closedAt")),
        actual_start_date=parse_timestamp(dct.get("actualStartDate")),
        work_notes=notes,
        version=dct.get("version", 1),
    )


# =============================================================================
# object -> dict
# =============================================================================


def _equipment_to_dict(equipment: Equipment) -> Dict[str, Any]:
    d = _omit_none({
        "id": equipment.id,
        "name": equipment.name,
        "category": equipment.category,
        "defaultTeam": equipment.default_team_id,
        "lastMaintenanceDate": _format_timestamp(equipment.last_maintenance_date),
        "nextMaintenanceDate": _format_timestamp(equipment.next_maintenance_date),
    })
    schedule = equipment.schedule
    if schedule.enabled or schedule.interval is not None:
        d["maintenanceSchedule"] = _omit_none({
            "enabled": schedule.enabled,
            "type": schedule.type,
            "interval": schedule.interval,
            "frequency": schedule.frequency,
        })
    return d


def _team_to_dict(team: Team) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": team.id, "name": team.name}
    if team.specialization:
        d["specialization"] = list(team.specialization)
    if team.members:
        d["members"] = [{"user": m.user_id, "role": m.role} for m in team.members]
    return d


def _request_to_dict(request: MaintenanceRequest) -> Dict[str, Any]:
    d = _omit_none({
        "id": request.id,
        "requestNumber": request.request_number,
        "title": request.title,
        "description": request.description,
        "type": request.type.value,
        "priority": request.priority.value,
        "status": request.status.value,
        "equipment": request.equipment_id,
        "team": request.team_id,
        "assignedTo": request.assigned_to_id,
        "createdBy": request.created_by_id,
        "scheduledDate": _format_timestamp(request.scheduled_date),
        "durationMinutes": request.duration_minutes,
        "dueDate": _format_timestamp(request.due_date),
        "createdAt": _format_timestamp(request.created_at),
        "actualStartDate": _format_timestamp(request.actual_start_date),
        "completedAt": _format_timestamp(request.completed_at),
        "closedAt": _format_timestamp(request.closed_at),
        "version": request.version,
    })
    if request.team_explicit:
        d["teamExplicit"] = True
    if request.work_notes:
        d["workNotes"] = [
            {
                "technician": n.technician_id,
                "note": n.note,
                "hoursWorked": n.hours_worked,
                "timestamp": _format_timestamp(n.timestamp),
            }
            for n in request.work_notes
        ]
    return d


# =============================================================================
# Workspace files
# =============================================================================


def load_workspace_data(filename: Union[str, Path]) -> Dict[str, Any]:
    """Load and schema-validate the raw YAML of a workspace file."""
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    validate(instance=data, schema=load_schema())
    return data


def dump_workspace_data(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


class YamlStore(MemoryStore):
    """
    MemoryStore persisted to a single YAML workspace file.

    The whole file is rewritten after every accepted write.
    """

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)
        data = load_workspace_data(self.filename)
        super().__init__(
            equipment=[_equipment_from_dict(e) for e in data.get("equipment") or []],
            teams=[_team_from_dict(t) for t in data.get("teams") or []],
            requests=[_request_from_dict(r) for r in data.get("requests") or []],
        )

    def save(self) -> None:
        data = {
            "teams": [_team_to_dict(t) for t in self.teams.values()],
            "equipment": [_equipment_to_dict(e) for e in self.equipment.values()],
            "requests": [_request_to_dict(r) for r in self.requests.values()],
        }
        dump_workspace_data(self.filename, data)

    def add_request(self, request: MaintenanceRequest) -> MaintenanceRequest:
        stored = super().add_request(request)
        self.save()
        return stored

    def update_request(
        self, request: MaintenanceRequest, expected_version: Optional[int] = None
    ) -> MaintenanceRequest:
        stored = super().update_request(request, expected_version)
        self.save()
        return stored

    def update_equipment(self, equipment: Equipment) -> None:
        super().update_equipment(equipment)
        self.save()


def create_workspace(
    filename: Union[str, Path],
    equipment: Optional[List[Equipment]] = None,
    teams: Optional[List[Team]] = None,
) -> None:
    """Create a new workspace file with no requests."""
    data = {
        "teams": [_team_to_dict(t) for t in teams or []],
        "equipment": [_equipment_to_dict(e) for e in equipment or []],
        "requests": [],
    }
    dump_workspace_data(filename, data)
