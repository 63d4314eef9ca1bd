#!/usr/bin/env python3
"""
Unified CLI for maintenance request tracking.

Commands:
  board      - Show requests grouped into board columns
  calendar   - Show scheduled requests for a month
  create     - Create a new maintenance request
  transition - Change a request's status
  move       - Move a card between board columns
  assign     - Assign a technician and/or team
  note       - Add a work note to a request
  next-due   - Show when equipment is next due for maintenance
  overdue    - Check one request, or list every overdue request
  equipment  - List equipment with maintenance status
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from tabulate import tabulate

from maintenance import (
    CalendarEvent,
    LifecycleEngine,
    MaintenanceError,
    MaintenanceRequest,
    Priority,
    Stage,
    YamlStore,
    calendar_events,
    classify,
    equipment_due_within,
    move_card,
)
from maintenance.config import configure_logging, load_settings
from maintenance.errors import InvalidRequest
from maintenance.loader import parse_timestamp

logger = logging.getLogger("gearguard")

SORT_KEYS = {
    "created": lambda r: r.created_at,
    "scheduled": lambda r: r.scheduled_date,
    "priority": lambda r: -list(Priority).index(r.priority),
}

# =============================================================================
# Formatting helpers
# =============================================================================


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp for display."""
    return value.strftime("%Y-%m-%d %H:%M") if value is not None else "-"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else "-"


def format_hours(hours: Optional[float]) -> str:
    return f"{hours:g}h" if hours else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_when(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 argument; offsets are converted to naive UTC."""
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except (ValueError, OverflowError):
        raise InvalidRequest(f"Invalid timestamp: {value}") from None


# =============================================================================
# Table builders
# =============================================================================


def make_request_table(
    requests: List[MaintenanceRequest], now: datetime
) -> List[List[str]]:
    """Convert requests to board table rows."""
    rows = []
    for req in requests:
        rows.append(
            [
                req.request_number or req.id,
                truncate(req.title),
                req.status.value,
                req.priority.value,
                format_timestamp(req.scheduled_date),
                req.team_id or "-",
                req.assigned_to_id or "-",
                "OVERDUE" if req.is_overdue(now) else "",
            ]
        )
    return rows


def make_calendar_table(events: List[CalendarEvent]) -> List[List[str]]:
    return [
        [
            format_date(e.start),
            e.start.strftime("%H:%M"),
            e.end.strftime("%H:%M"),
            truncate(e.title),
            e.color_class,
        ]
        for e in events
    ]


def print_request(req: MaintenanceRequest) -> None:
    print(f"  Request:   {req.request_number or '-'} ({req.id})")
    print(f"  Title:     {req.title or '-'}")
    print(f"  Status:    {req.status.value} [{req.stage.value}]")
    print(f"  Priority:  {req.priority.value}")
    print(f"  Equipment: {req.equipment_id}")
    print(f"  Team:      {req.team_id or '-'}")
    print(f"  Assignee:  {req.assigned_to_id or '-'}")
    print(f"  Scheduled: {format_timestamp(req.scheduled_date)}")
    if req.completed_at:
        print(f"  Completed: {format_timestamp(req.completed_at)}")
    if req.work_notes:
        print(f"  Worked:    {format_hours(req.total_hours_worked)}")


# =============================================================================
# Commands
# =============================================================================


def cmd_board(args, engine: LifecycleEngine, settings):
    """Show requests grouped into board columns."""
    now = parse_when(args.now) or datetime.now()
    board = classify(engine.store.list_requests(), sort_key=SORT_KEYS.get(args.sort))

    headers = ["Request", "Title", "Status", "Priority", "Scheduled", "Team", "Assignee", ""]
    for stage, cards in board.items():
        print(f"{stage.value.upper()} ({len(cards)}):")
        if cards:
            print(tabulate(make_request_table(cards, now), headers=headers, tablefmt="simple"))
        print()
    return 0


def cmd_calendar(args, engine: LifecycleEngine, settings):
    """Show scheduled requests for a month."""
    if args.month:
        start = datetime.strptime(args.month, "%Y-%m")
    else:
        today = datetime.now()
        start = datetime(today.year, today.month, 1)
    end = start + relativedelta(months=1)
    events = calendar_events(
        engine.store.list_requests(), start, end, settings.default_duration_minutes
    )

    print(f"Calendar: {start.strftime('%B %Y')}")
    print()
    if not events:
        print("No scheduled requests.")
        return 0
    headers = ["Date", "Start", "End", "Title", "Color"]
    print(tabulate(make_calendar_table(events), headers=headers, tablefmt="simple"))
    return 0


def cmd_create(args, engine: LifecycleEngine, settings):
    """Create a new maintenance request."""
    req = engine.create_request(
        equipment_id=args.equipment_id,
        type=args.type,
        priority=args.priority,
        scheduled_date=parse_when(args.scheduled),
        description=args.description or "",
        title=args.title or "",
        created_by=args.by,
        team_id=args.team,
        assigned_to_id=args.assignee,
        duration_minutes=args.duration,
    )
    print("Request created:")
    print_request(req)
    return 0


def cmd_transition(args, engine: LifecycleEngine, settings):
    """Change a request's status."""
    req = engine.transition(args.request_id, args.status, actor=args.by)
    print("Status updated:")
    print_request(req)
    return 0


def cmd_move(args, engine: LifecycleEngine, settings):
    """Move a card between board columns."""
    req = move_card(engine, args.request_id, args.from_stage, args.to_stage, actor=args.by)
    print(f"Card is in {req.stage.value}:")
    print_request(req)
    return 0


def cmd_assign(args, engine: LifecycleEngine, settings):
    if not args.technician and not args.team:
        print("Error: give --technician and/or --team")
        return 1
    req = engine.assign(args.request_id, args.technician, args.team, actor=args.by)
    print("Request assigned:")
    print_request(req)
    return 0


def cmd_note(args, engine: LifecycleEngine, settings):
    req = engine.add_work_note(args.request_id, args.by, args.text, args.hours)
    print(f"Note added to {req.request_number or req.id} "
          f"({len(req.work_notes)} notes, {format_hours(req.total_hours_worked)} total)")
    return 0


def cmd_next_due(args, engine: LifecycleEngine, settings):
    """Show when equipment is next due for maintenance."""
    due = engine.compute_next_due(args.equipment_id, now=parse_when(args.now))
    print(f"{args.equipment_id}: next maintenance due {format_date(due)}")
    return 0


def cmd_overdue(args, engine: LifecycleEngine, settings):
    """Check one request, or list every overdue request."""
    now = parse_when(args.now) or datetime.now()
    if args.request_id:
        overdue = engine.is_overdue(args.request_id, now)
        print(f"{args.request_id}: {'OVERDUE' if overdue else 'not overdue'}")
        return 0

    overdue = [r for r in engine.store.list_requests() if r.is_overdue(now)]
    if not overdue:
        print("No overdue requests.")
        return 0
    headers = ["Request", "Title", "Status", "Priority", "Scheduled", "Team", "Assignee", ""]
    print(f"OVERDUE ({len(overdue)}):")
    print(tabulate(make_request_table(overdue, now), headers=headers, tablefmt="simple"))
    return 0


def cmd_equipment(args, engine: LifecycleEngine, settings):
    """List equipment with maintenance status."""
    now = parse_when(args.now) or datetime.now()
    equipment = list(engine.store.equipment.values())
    if args.due_within is not None:
        equipment = equipment_due_within(equipment, now, args.due_within)

    rows = []
    for e in equipment:
        schedule = "-"
        if e.has_recurring_schedule:
            schedule = f"every {e.schedule.interval} {e.schedule.frequency}"
        rows.append(
            [
                e.id,
                truncate(e.name),
                e.default_team_id or "-",
                schedule,
                format_date(e.last_maintenance_date),
                format_date(e.next_maintenance_date),
                e.maintenance_status(now, settings.due_soon_days, settings.upcoming_days),
            ]
        )
    headers = ["Id", "Name", "Team", "Schedule", "Last", "Next", "Status"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


COMMANDS = {
    "board": cmd_board,
    "calendar": cmd_calendar,
    "create": cmd_create,
    "transition": cmd_transition,
    "move": cmd_move,
    "assign": cmd_assign,
    "note": cmd_note,
    "next-due": cmd_next_due,
    "overdue": cmd_overdue,
    "equipment": cmd_equipment,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    stages = [s.value for s in Stage]
    parser = argparse.ArgumentParser(
        description="Maintenance request tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s plant.yaml board --sort priority
  %(prog)s plant.yaml create press-1 --type Preventive --priority High \\
      --scheduled 2024-05-01T09:00 --description "Replace hydraulic seals"
  %(prog)s plant.yaml transition req-1 "Waiting for Parts" --by alice
  %(prog)s plant.yaml move req-1 in-progress repaired --by alice
  %(prog)s plant.yaml next-due press-1
  %(prog)s plant.yaml overdue
""",
    )
    parser.add_argument(
        "workspace_file",
        type=Path,
        nargs="?",
        help="Path to workspace YAML file (default: $GEARGUARD_WORKSPACE)",
    )
    parser.add_argument("--config", type=Path, help="Path to settings YAML file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    board_parser = subparsers.add_parser("board", help="Show the kanban board")
    board_parser.add_argument(
        "--sort",
        choices=sorted(SORT_KEYS),
        help="Sort cards within each column (default: creation order)",
    )
    board_parser.add_argument("--now", type=str, help="Evaluate overdue at this time")

    calendar_parser = subparsers.add_parser("calendar", help="Show a month of requests")
    calendar_parser.add_argument("--month", type=str, help="Month as YYYY-MM (default: current)")

    create_parser = subparsers.add_parser("create", help="Create a maintenance request")
    create_parser.add_argument("equipment_id", type=str, help="Equipment id")
    create_parser.add_argument(
        "--type",
        choices=["Corrective", "Preventive", "Predictive", "Emergency"],
        default="Corrective",
    )
    create_parser.add_argument(
        "--priority",
        choices=["Low", "Medium", "High", "Critical", "Emergency"],
        default="Medium",
    )
    create_parser.add_argument(
        "--scheduled", type=str, required=True, help="Scheduled time (ISO 8601)"
    )
    create_parser.add_argument("--title", type=str)
    create_parser.add_argument("--description", type=str)
    create_parser.add_argument("--team", type=str, help="Team id (default: equipment's team)")
    create_parser.add_argument("--assignee", type=str, help="Technician user id")
    create_parser.add_argument("--duration", type=int, help="Estimated duration in minutes")
    create_parser.add_argument("--by", type=str, help="User creating the request")

    transition_parser = subparsers.add_parser("transition", help="Change request status")
    transition_parser.add_argument("request_id", type=str)
    transition_parser.add_argument("status", type=str, help="Target status, e.g. 'In Progress'")
    transition_parser.add_argument("--by", type=str)

    move_parser = subparsers.add_parser("move", help="Move a card between columns")
    move_parser.add_argument("request_id", type=str)
    move_parser.add_argument("from_stage", choices=stages)
    move_parser.add_argument("to_stage", choices=stages)
    move_parser.add_argument("--by", type=str)

    assign_parser = subparsers.add_parser("assign", help="Assign technician/team")
    assign_parser.add_argument("request_id", type=str)
    assign_parser.add_argument("--technician", type=str)
    assign_parser.add_argument("--team", type=str)
    assign_parser.add_argument("--by", type=str)

    note_parser = subparsers.add_parser("note", help="Add a work note")
    note_parser.add_argument("request_id", type=str)
    note_parser.add_argument("text", type=str)
    note_parser.add_argument("--by", type=str, required=True, help="Technician user id")
    note_parser.add_argument("--hours", type=float, default=0, help="Hours worked")

    next_due_parser = subparsers.add_parser("next-due", help="Next maintenance date")
    next_due_parser.add_argument("equipment_id", type=str)
    next_due_parser.add_argument("--now", type=str, help="Base time when never maintained")

    overdue_parser = subparsers.add_parser("overdue", help="Overdue requests")
    overdue_parser.add_argument("request_id", type=str, nargs="?")
    overdue_parser.add_argument("--now", type=str, help="Evaluate at this time")

    equipment_parser = subparsers.add_parser("equipment", help="List equipment")
    equipment_parser.add_argument(
        "--due-within", type=int, help="Only equipment due within N days"
    )
    equipment_parser.add_argument("--now", type=str, help="Evaluate at this time")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    configure_logging(settings)

    workspace = args.workspace_file or (
        Path(settings.workspace) if settings.workspace else None
    )
    if workspace is None:
        print("Error: no workspace file given")
        return 1
    if not workspace.exists():
        print(f"Error: File not found: {workspace}")
        return 1

    engine = LifecycleEngine(YamlStore(workspace))
    try:
        return COMMANDS[args.command](args, engine, settings)
    except MaintenanceError as e:
        logger.debug("Command %s failed: %s", args.command, e.code)
        print(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
