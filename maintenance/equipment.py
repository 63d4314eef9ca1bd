"""Equipment records as seen by the maintenance core."""

from datetime import datetime
from typing import Optional

from .calculations import maintenance_status, next_due_date, parse_unit, validate_interval
from .status import FrequencyUnit, MaintenanceType


class MaintenanceSchedule:
    """Recurring preventive-maintenance definition attached to equipment."""

    def __init__(
            self,
            enabled: bool = False,
            interval: Optional[int] = None,
            frequency: Optional[str] = None,
            type: str = MaintenanceType.PREVENTIVE.value,
    ):
        self.enabled = bool(enabled)
        self.interval = interval
        self.frequency = frequency
        self.type = type

    @property
    def unit(self) -> FrequencyUnit:
        return parse_unit(self.frequency)

    def validate(self) -> None:
        """Raise InvalidSchedule if an enabled schedule is misconfigured."""
        if self.enabled:
            validate_interval(self.interval)
            parse_unit(self.frequency)

    def next_due(self, base: datetime) -> datetime:
        return next_due_date(base, self.interval, self.frequency)


class Equipment:
    """A piece of equipment with its default team and recurring schedule."""

    def __init__(
            self,
            id: str,
            name: str,
            default_team_id: Optional[str] = None,
            schedule: Optional[MaintenanceSchedule] = None,
            last_maintenance_date: Optional[datetime] = None,
            next_maintenance_date: Optional[datetime] = None,
            category: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.default_team_id = default_team_id
        self.schedule = schedule or MaintenanceSchedule()
        self.last_maintenance_date = last_maintenance_date
        self.next_maintenance_date = next_maintenance_date
        self.category = category

    @property
    def has_recurring_schedule(self) -> bool:
        return self.schedule.enabled

    def maintenance_status(
        self, now: datetime, due_soon_days: int = 7, upcoming_days: int = 30
    ) -> str:
        return maintenance_status(
            self.next_maintenance_date, now, due_soon_days, upcoming_days
        )
