"""Shared fixtures: a small plant with two teams and four pieces of equipment."""

from datetime import datetime

import pytest

from maintenance import (
    Equipment,
    LifecycleEngine,
    MaintenanceSchedule,
    MemoryStore,
    Team,
    TeamMember,
    create_workspace,
)

CREATED_AT = datetime(2024, 4, 1, 8, 0)
SCHEDULED = datetime(2024, 4, 20, 9, 0)


@pytest.fixture
def teams():
    return [
        Team(
            "mech",
            "Mechanical",
            ["Mechanical", "Hydraulics"],
            [TeamMember("alice", "lead"), TeamMember("bob", "technician")],
        ),
        Team("elec", "Electrical", ["Electrical"], [TeamMember("carol", "lead")]),
    ]


@pytest.fixture
def equipment():
    return [
        Equipment(
            "press-1",
            "Hydraulic Press",
            default_team_id="mech",
            schedule=MaintenanceSchedule(True, 3, "months"),
            last_maintenance_date=datetime(2024, 1, 1),
            next_maintenance_date=datetime(2024, 4, 1),
        ),
        Equipment("panel-2", "Distribution Panel", default_team_id="elec"),
        Equipment("cart-3", "Hand Cart"),
        Equipment(
            "pump-4",
            "Coolant Pump",
            default_team_id="mech",
            schedule=MaintenanceSchedule(True, 2, "weeks"),
        ),
    ]


@pytest.fixture
def store(equipment, teams):
    return MemoryStore(equipment=equipment, teams=teams)


@pytest.fixture
def engine(store):
    return LifecycleEngine(store)


@pytest.fixture
def new_request(engine):
    """Factory creating a request with sensible defaults."""

    def _new(equipment_id="press-1", **kwargs):
        kwargs.setdefault("type", "Corrective")
        kwargs.setdefault("priority", "Medium")
        kwargs.setdefault("scheduled_date", SCHEDULED)
        kwargs.setdefault("description", "Hydraulic seal leaking")
        kwargs.setdefault("now", CREATED_AT)
        return engine.create_request(equipment_id, **kwargs)

    return _new


@pytest.fixture
def workspace(tmp_path, equipment, teams):
    """The same plant written to a YAML workspace file."""
    path = tmp_path / "plant.yaml"
    create_workspace(path, equipment=equipment, teams=teams)
    return path
