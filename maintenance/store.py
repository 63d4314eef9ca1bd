"""In-memory record store for requests, equipment and teams."""

import itertools
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .equipment import Equipment
from .errors import NotFound, VersionConflict
from .request import MaintenanceRequest
from .team import Team

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Request Store plus the Equipment and Team directories, held in dicts.

    Requests are copied on the way in and out, so a caller holding a request
    never sees a write it did not make. Each accepted write bumps the
    request's version; passing ``expected_version`` turns a lost update into
    a VersionConflict instead of last-write-wins.
    """

    def __init__(
        self,
        equipment: Optional[Iterable[Equipment]] = None,
        teams: Optional[Iterable[Team]] = None,
        requests: Optional[Iterable[MaintenanceRequest]] = None,
    ):
        self.equipment: Dict[str, Equipment] = {e.id: e for e in equipment or []}
        self.teams: Dict[str, Team] = {t.id: t for t in teams or []}
        self.requests: Dict[str, MaintenanceRequest] = {
            r.id: r for r in requests or []
        }
        self._ids = itertools.count(len(self.requests) + 1)

    # -------------------------------------------------------------------------
    # Directories
    # -------------------------------------------------------------------------

    def get_equipment(self, equipment_id: str) -> Equipment:
        try:
            return self.equipment[equipment_id]
        except KeyError:
            raise NotFound(f"Equipment '{equipment_id}' not found") from None

    def get_team(self, team_id: str) -> Team:
        try:
            return self.teams[team_id]
        except KeyError:
            raise NotFound(f"Team '{team_id}' not found") from None

    def update_equipment(self, equipment: Equipment) -> None:
        self.equipment[equipment.id] = equipment

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def get_request(self, request_id: str) -> MaintenanceRequest:
        try:
            return self.requests[request_id].copy()
        except KeyError:
            raise NotFound(f"Maintenance request '{request_id}' not found") from None

    def list_requests(self) -> List[MaintenanceRequest]:
        """All requests in creation order."""
        return [r.copy() for r in self.requests.values()]

    def new_request_id(self) -> str:
        for n in self._ids:
            candidate = f"req-{n}"
            if candidate not in self.requests:
                return candidate

    def next_request_number(self, now: datetime) -> str:
        """Next MR-YYYYMM-NNNN number for the month of ``now``."""
        prefix = f"MR-{now.year}{now.month:02d}-"
        sequences = [
            int(r.request_number[len(prefix):])
            for r in self.requests.values()
            if r.request_number and r.request_number.startswith(prefix)
        ]
        return f"{prefix}{max(sequences, default=0) + 1:04d}"

    def add_request(self, request: MaintenanceRequest) -> MaintenanceRequest:
        stored = request.copy()
        stored.version = 1
        self.requests[stored.id] = stored
        logger.debug("Stored new request %s", stored.id)
        return stored.copy()

    def update_request(
        self, request: MaintenanceRequest, expected_version: Optional[int] = None
    ) -> MaintenanceRequest:
        current = self.requests.get(request.id)
        if current is None:
            raise NotFound(f"Maintenance request '{request.id}' not found")
        if expected_version is not None and current.version != expected_version:
            raise VersionConflict(
                f"Request '{request.id}' is at version {current.version}, "
                f"expected {expected_version}"
            )
        stored = request.copy()
        stored.version = current.version + 1
        self.requests[stored.id] = stored
        return stored.copy()
