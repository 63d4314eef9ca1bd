"""Scheduling helpers: due dates, overdue checks and SLA deadlines.

All functions take the evaluation time as an argument; none read the clock.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from .errors import InvalidSchedule
from .status import FrequencyUnit, Priority, Stage

# (response, resolution) in hours
SLA_HOURS: Dict[Priority, Tuple[float, float]] = {
    Priority.EMERGENCY: (0.5, 4),
    Priority.CRITICAL: (2, 8),
    Priority.HIGH: (4, 24),
    Priority.MEDIUM: (8, 72),
    Priority.LOW: (24, 168),
}


def parse_unit(unit: Union[FrequencyUnit, str, None]) -> FrequencyUnit:
    """Coerce a frequency unit, raising InvalidSchedule when unrecognized."""
    if isinstance(unit, FrequencyUnit):
        return unit
    if unit is None:
        raise InvalidSchedule("Frequency unit is required")
    try:
        return FrequencyUnit(str(unit).lower())
    except ValueError:
        raise InvalidSchedule(f"Unknown frequency unit '{unit}'") from None


def validate_interval(interval) -> int:
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise InvalidSchedule(f"Interval must be a positive integer, got {interval!r}")
    if interval < 1:
        raise InvalidSchedule(f"Interval must be at least 1, got {interval}")
    return interval


def next_due_date(
    last_maintenance: datetime,
    interval: int,
    unit: Union[FrequencyUnit, str, None],
) -> datetime:
    """
    Calculate next due date: last maintenance + interval units.

    Months and years are calendar-aware (Jan 31 + 1 month lands on the last
    day of February); days and weeks are exact elapsed time.
    """
    interval = validate_interval(interval)
    unit = parse_unit(unit)
    if unit is FrequencyUnit.DAYS:
        return last_maintenance + timedelta(days=interval)
    if unit is FrequencyUnit.WEEKS:
        return last_maintenance + timedelta(weeks=interval)
    if unit is FrequencyUnit.MONTHS:
        return last_maintenance + relativedelta(months=interval)
    return last_maintenance + relativedelta(years=interval)


def is_overdue(due: Optional[datetime], stage: Stage, now: datetime) -> bool:
    """True when due is in the past and the stage is not repaired/scrap."""
    if due is None:
        return False
    if stage.is_terminal:
        return False
    return due < now


def maintenance_status(
    next_due: Optional[datetime],
    now: datetime,
    due_soon_days: int = 7,
    upcoming_days: int = 30,
) -> str:
    """Equipment-level label for how close the next maintenance is."""
    if next_due is None:
        return "Not Scheduled"
    remaining = next_due - now
    if remaining < timedelta(0):
        return "Overdue"
    if remaining <= timedelta(days=due_soon_days):
        return "Due Soon"
    if remaining <= timedelta(days=upcoming_days):
        return "Upcoming"
    return "Scheduled"


def sla_deadlines(
    priority: Priority, created_at: datetime
) -> Tuple[datetime, datetime]:
    """Response and resolution deadlines for a request created at created_at."""
    response, resolution = SLA_HOURS[priority]
    return (
        created_at + timedelta(hours=response),
        created_at + timedelta(hours=resolution),
    )


def equipment_due_within(equipment: Iterable, now: datetime, days: int = 7) -> List:
    """Equipment whose next maintenance date falls on or before now + days."""
    cutoff = now + timedelta(days=days)
    due = [
        e for e in equipment
        if e.next_maintenance_date is not None and e.next_maintenance_date <= cutoff
    ]
    return sorted(due, key=lambda e: e.next_maintenance_date)
