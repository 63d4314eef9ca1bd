"""WorkNote dataclass for technician work-log entries."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class WorkNote:
    """A work-log entry appended to a maintenance request."""

    technician_id: str
    note: str
    timestamp: datetime
    hours_worked: float = 0
