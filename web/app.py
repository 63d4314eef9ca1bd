"""Flask JSON API for the maintenance request board."""

import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from maintenance import (
    LifecycleEngine,
    MaintenanceError,
    MaintenanceRequest,
    YamlStore,
    calendar_events,
    classify,
    move_card,
    stage_counts,
)
from maintenance.board import CalendarEvent
from maintenance.config import configure_logging, load_settings
from maintenance.errors import InvalidRequest
from maintenance.loader import parse_timestamp

logger = logging.getLogger(__name__)

settings = load_settings(os.environ.get("GEARGUARD_CONFIG"))
configure_logging(settings)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
app.config["WORKSPACE_FILE"] = settings.workspace
app.config["DEFAULT_DURATION_MINUTES"] = settings.default_duration_minutes


def get_engine() -> LifecycleEngine:
    """Engine over the configured workspace, reloaded on every call."""
    workspace = app.config.get("WORKSPACE_FILE")
    if not workspace:
        raise MaintenanceError("No workspace file configured")
    return LifecycleEngine(YamlStore(workspace))


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_when(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except (ValueError, OverflowError):
        raise InvalidRequest(f"Invalid timestamp for '{field}': {value}") from None


def request_to_json(req: MaintenanceRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    return {
        "id": req.id,
        "requestNumber": req.request_number,
        "title": req.title,
        "description": req.description,
        "type": req.type.value,
        "priority": req.priority.value,
        "status": req.status.value,
        "stage": req.stage.value,
        "equipmentId": req.equipment_id,
        "teamId": req.team_id,
        "assignedToId": req.assigned_to_id,
        "createdById": req.created_by_id,
        "scheduledDate": _timestamp(req.scheduled_date),
        "durationMinutes": req.duration_minutes,
        "dueDate": _timestamp(req.due_date),
        "createdAt": _timestamp(req.created_at),
        "completedAt": _timestamp(req.completed_at),
        "closedAt": _timestamp(req.closed_at),
        "isOverdue": req.is_overdue(now),
        "totalHoursWorked": req.total_hours_worked,
        "version": req.version,
    }


def event_to_json(event: CalendarEvent) -> Dict[str, Any]:
    return {
        "requestId": event.request_id,
        "title": event.title,
        "start": _timestamp(event.start),
        "end": _timestamp(event.end),
        "colorClass": event.color_class,
    }


@app.errorhandler(MaintenanceError)
def handle_maintenance_error(error: MaintenanceError):
    logger.info("%s: %s", error.code, error.message)
    return jsonify({"error": error.message, "code": error.code}), error.status_code


@app.route("/board")
def board():
    """Requests grouped into the four board stages."""
    now = parse_when(request.args.get("now"), "now")
    grouped = classify(get_engine().store.list_requests())
    return jsonify({
        "stages": {
            stage.value: [request_to_json(r, now) for r in cards]
            for stage, cards in grouped.items()
        },
        "counts": stage_counts(grouped),
    })


@app.route("/calendar")
def calendar():
    """Calendar events starting between ?start and ?end."""
    start = parse_when(request.args.get("start"), "start")
    end = parse_when(request.args.get("end"), "end")
    if start is None or end is None:
        raise InvalidRequest("Both 'start' and 'end' are required")
    events = calendar_events(
        get_engine().store.list_requests(),
        start,
        end,
        app.config["DEFAULT_DURATION_MINUTES"],
    )
    return jsonify({"events": [event_to_json(e) for e in events]})


@app.route("/requests", methods=["POST"])
def create_request():
    data = request.get_json(silent=True) or {}
    if not data.get("equipmentId"):
        raise InvalidRequest("'equipmentId' is required")
    created = get_engine().create_request(
        equipment_id=data["equipmentId"],
        type=data.get("type", "Corrective"),
        priority=data.get("priority", "Medium"),
        scheduled_date=parse_when(data.get("scheduledDate"), "scheduledDate"),
        description=data.get("description", ""),
        title=data.get("title", ""),
        created_by=data.get("createdBy"),
        team_id=data.get("teamId"),
        assigned_to_id=data.get("assignedToId"),
        duration_minutes=data.get("durationMinutes"),
        due_date=parse_when(data.get("dueDate"), "dueDate"),
    )
    return jsonify({"request": request_to_json(created)}), 201


@app.route("/requests/<request_id>")
def get_request(request_id: str):
    return jsonify({"request": request_to_json(get_engine().store.get_request(request_id))})


@app.route("/requests/<request_id>/status", methods=["POST"])
def transition_status(request_id: str):
    """Change status; send ``version`` to reject lost updates."""
    data = request.get_json(silent=True) or {}
    updated = get_engine().transition(
        request_id,
        data.get("status"),
        actor=data.get("actor"),
        expected_version=data.get("version"),
    )
    return jsonify({"request": request_to_json(updated)})


@app.route("/requests/<request_id>/move", methods=["POST"])
def move(request_id: str):
    data = request.get_json(silent=True) or {}
    moved = move_card(
        get_engine(),
        request_id,
        data.get("from"),
        data.get("to"),
        actor=data.get("actor"),
        expected_version=data.get("version"),
    )
    return jsonify({"request": request_to_json(moved)})


@app.route("/requests/<request_id>/assign", methods=["POST"])
def assign(request_id: str):
    data = request.get_json(silent=True) or {}
    updated = get_engine().assign(
        request_id,
        technician_id=data.get("technicianId"),
        team_id=data.get("teamId"),
        actor=data.get("actor"),
    )
    return jsonify({"request": request_to_json(updated)})


@app.route("/requests/<request_id>/notes", methods=["POST"])
def add_note(request_id: str):
    data = request.get_json(silent=True) or {}
    updated = get_engine().add_work_note(
        request_id,
        technician_id=data.get("technicianId"),
        note=data.get("note", ""),
        hours_worked=data.get("hoursWorked", 0),
    )
    return jsonify({"request": request_to_json(updated)})


@app.route("/requests/<request_id>/overdue")
def overdue(request_id: str):
    now = parse_when(request.args.get("now"), "now") or datetime.now()
    return jsonify({"requestId": request_id, "isOverdue": get_engine().is_overdue(request_id, now)})


@app.route("/equipment/<equipment_id>/next-due")
def next_due(equipment_id: str):
    now = parse_when(request.args.get("now"), "now")
    due = get_engine().compute_next_due(equipment_id, now=now)
    return jsonify({"equipmentId": equipment_id, "nextDue": _timestamp(due)})


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
