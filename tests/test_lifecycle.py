#!/usr/bin/env python3
"""
Tests for LifecycleEngine.

Covers:
1. Creation - always New, team filled from the equipment default
2. Explicit teams - win over the default and survive equipment changes
3. Terminal lock - nothing leaves Completed, Cancelled or Rejected
4. Completion - stamps timestamps and reschedules recurring maintenance
5. Assignment, work notes and version checks
"""

import warnings
from datetime import date, datetime

import pytest

from maintenance import (
    ConflictingAssignment,
    Equipment,
    InvalidRequest,
    InvalidSchedule,
    InvalidStatus,
    InvalidTransition,
    MaintenanceSchedule,
    NotFound,
    Priority,
    Stage,
    Status,
    TERMINAL_STATUSES,
    VersionConflict,
)

NON_TERMINAL = [s for s in Status if s not in TERMINAL_STATUSES]
COMPLETION = datetime(2024, 4, 15, 10, 0)

# =============================================================================
# Creation
# =============================================================================


class TestCreateRequest:
    def test_starts_new_with_equipment_team(self, new_request):
        req = new_request("press-1")
        assert req.status is Status.NEW
        assert req.team_id == "mech"
        assert not req.team_explicit
        assert req.created_at == datetime(2024, 4, 1, 8, 0)
        assert req.version == 1

    def test_request_numbers_are_sequential_per_month(self, new_request):
        first = new_request()
        second = new_request()
        assert first.request_number == "MR-202404-0001"
        assert second.request_number == "MR-202404-0002"
        assert first.id != second.id

    def test_equipment_without_team(self, new_request):
        assert new_request("cart-3").team_id is None

    def test_explicit_team_matching_default_does_not_warn(self, new_request):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            req = new_request("press-1", team_id="mech")
        assert req.team_id == "mech"
        assert req.team_explicit

    def test_conflicting_team_warns_and_explicit_wins(self, new_request):
        with pytest.warns(ConflictingAssignment):
            req = new_request("press-1", team_id="elec")
        assert req.team_id == "elec"
        assert req.team_explicit

    def test_title_defaults_to_description(self, new_request):
        assert new_request(description="Replace belt").title == "Replace belt"
        assert new_request(title="Belt", description="Replace belt").title == "Belt"

    def test_unknown_equipment(self, new_request):
        with pytest.raises(NotFound):
            new_request("nope")

    def test_unknown_team(self, new_request):
        with pytest.raises(NotFound):
            new_request("press-1", team_id="plumbing")

    def test_scheduled_date_required(self, new_request):
        with pytest.raises(InvalidRequest):
            new_request(scheduled_date=None)

    def test_unknown_priority(self, new_request):
        with pytest.raises(InvalidRequest):
            new_request(priority="Urgent")

    def test_unknown_type(self, new_request):
        with pytest.raises(InvalidRequest):
            new_request(type="Cosmetic")

    def test_accepts_enum_values(self, new_request):
        req = new_request(priority=Priority.CRITICAL)
        assert req.priority is Priority.CRITICAL

    @pytest.mark.parametrize("duration", [0, -15, "30", True, 12.5])
    def test_invalid_duration(self, new_request, duration):
        with pytest.raises(InvalidRequest):
            new_request(duration_minutes=duration)


class TestTeamResolution:
    """Team auto-fill when equipment changes after creation."""

    def test_implicit_team_follows_equipment(self, engine, new_request):
        req = new_request("press-1")
        moved = engine.change_equipment(req.id, "panel-2")
        assert moved.equipment_id == "panel-2"
        assert moved.team_id == "elec"

    def test_explicit_team_survives_equipment_changes(self, engine, store, new_request):
        req = new_request("press-1")
        assert req.team_id == "mech"

        with pytest.warns(ConflictingAssignment):
            req = engine.set_team(req.id, "elec")
        assert req.team_id == "elec"

        req = engine.change_equipment(req.id, "cart-3")
        assert req.team_id == "elec"

        store.get_equipment("press-1").default_team_id = "mech"
        with pytest.warns(ConflictingAssignment):
            req = engine.change_equipment(req.id, "press-1")
        assert req.team_id == "elec"

    def test_change_to_unknown_equipment(self, engine, new_request):
        req = new_request()
        with pytest.raises(NotFound):
            engine.change_equipment(req.id, "nope")


# =============================================================================
# Transitions
# =============================================================================


class TestTransition:
    @pytest.mark.parametrize("start", NON_TERMINAL)
    @pytest.mark.parametrize("target", list(Status))
    def test_non_terminal_can_reach_any_status(self, engine, new_request, start, target):
        req = new_request()
        if start is not Status.NEW:
            req = engine.transition(req.id, start, now=COMPLETION)
        updated = engine.transition(req.id, target, now=COMPLETION)
        assert updated.status is target

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("target", list(Status))
    def test_terminal_rejects_everything(self, engine, store, new_request, terminal, target):
        req = new_request()
        closed = engine.transition(req.id, terminal, now=COMPLETION)
        with pytest.raises(InvalidTransition):
            engine.transition(req.id, target, now=datetime(2024, 5, 1))
        after = store.get_request(req.id)
        assert after.status is terminal
        assert after.version == closed.version
        assert after.closed_at == COMPLETION

    def test_accepts_status_strings(self, engine, new_request):
        req = new_request()
        assert engine.transition(req.id, "Waiting for Parts").status is Status.WAITING_FOR_PARTS

    def test_unknown_status(self, engine, new_request):
        req = new_request()
        with pytest.raises(InvalidStatus):
            engine.transition(req.id, "Done")

    def test_unknown_request(self, engine):
        with pytest.raises(NotFound):
            engine.transition("req-404", Status.IN_PROGRESS)

    def test_new_straight_to_completed(self, engine, new_request):
        req = new_request()
        done = engine.transition(req.id, Status.COMPLETED, now=COMPLETION)
        assert done.status is Status.COMPLETED
        assert done.stage is Stage.REPAIRED

    def test_in_progress_stamps_start_once(self, engine, new_request):
        req = new_request()
        first = datetime(2024, 4, 2, 9, 0)
        engine.transition(req.id, Status.IN_PROGRESS, now=first)
        engine.transition(req.id, Status.ON_HOLD, now=datetime(2024, 4, 3))
        again = engine.transition(req.id, Status.IN_PROGRESS, now=datetime(2024, 4, 4))
        assert again.actual_start_date == first

    @pytest.mark.parametrize("terminal", [Status.CANCELLED, Status.REJECTED])
    def test_closing_without_completion(self, engine, store, new_request, terminal):
        req = new_request()
        closed = engine.transition(req.id, terminal, now=COMPLETION)
        assert closed.closed_at == COMPLETION
        assert closed.completed_at is None
        assert store.get_equipment("press-1").next_maintenance_date == datetime(2024, 4, 1)

    def test_expected_version_detects_lost_update(self, engine, store, new_request):
        req = new_request()
        engine.transition(req.id, Status.ASSIGNED, expected_version=req.version)
        with pytest.raises(VersionConflict):
            engine.transition(req.id, Status.ON_HOLD, expected_version=req.version)
        assert store.get_request(req.id).status is Status.ASSIGNED

    def test_last_write_wins_without_version(self, engine, new_request):
        req = new_request()
        engine.transition(req.id, Status.ASSIGNED)
        assert engine.transition(req.id, Status.ON_HOLD).status is Status.ON_HOLD


class TestCompletion:
    """Completing a request reschedules recurring maintenance from now."""

    def test_recomputes_from_completion_time(self, engine, store, new_request):
        req = new_request("press-1")
        done = engine.transition(req.id, Status.COMPLETED, actor="alice", now=COMPLETION)

        assert done.completed_at == COMPLETION
        assert done.closed_at == COMPLETION
        press = store.get_equipment("press-1")
        assert press.last_maintenance_date == COMPLETION
        assert press.next_maintenance_date.date() == date(2024, 7, 15)

    def test_equipment_without_schedule_untouched(self, engine, store, new_request):
        req = new_request("panel-2")
        engine.transition(req.id, Status.COMPLETED, now=COMPLETION)
        panel = store.get_equipment("panel-2")
        assert panel.next_maintenance_date is None
        assert panel.last_maintenance_date is None

    def test_misconfigured_schedule_blocks_completion(self, engine, store, new_request):
        store.update_equipment(
            Equipment("lathe-9", "Lathe", schedule=MaintenanceSchedule(True, 0, "months"))
        )
        req = new_request("lathe-9")
        with pytest.raises(InvalidSchedule):
            engine.transition(req.id, Status.COMPLETED, now=COMPLETION)
        assert store.get_request(req.id).status is Status.NEW


# =============================================================================
# Assignment and work notes
# =============================================================================


class TestAssign:
    def test_assign_technician(self, engine, new_request):
        req = new_request()
        assigned = engine.assign(req.id, technician_id="bob", actor="alice")
        assert assigned.status is Status.ASSIGNED
        assert assigned.assigned_to_id == "bob"

    def test_technician_must_belong_to_team(self, engine, new_request):
        req = new_request()
        with pytest.raises(InvalidRequest):
            engine.assign(req.id, technician_id="carol")

    def test_assign_team_and_member(self, engine, new_request):
        req = new_request("cart-3")
        assigned = engine.assign(req.id, technician_id="carol", team_id="elec")
        assert assigned.team_id == "elec"
        assert assigned.team_explicit
        assert assigned.assigned_to_id == "carol"

    def test_assign_unknown_team(self, engine, new_request):
        req = new_request()
        with pytest.raises(NotFound):
            engine.assign(req.id, team_id="plumbing")

    def test_assign_closed_request(self, engine, new_request):
        req = new_request()
        engine.transition(req.id, Status.REJECTED)
        with pytest.raises(InvalidTransition):
            engine.assign(req.id, technician_id="bob")


class TestWorkNotes:
    def test_notes_accumulate_hours(self, engine, new_request):
        req = new_request()
        engine.add_work_note(req.id, "bob", "Drained fluid", 2, now=datetime(2024, 4, 2))
        updated = engine.add_work_note(req.id, "bob", "Replaced seal", 1.5)
        assert [n.note for n in updated.work_notes] == ["Drained fluid", "Replaced seal"]
        assert updated.total_hours_worked == 3.5

    def test_note_on_completed_request(self, engine, new_request):
        req = new_request()
        engine.transition(req.id, Status.COMPLETED, now=COMPLETION)
        updated = engine.add_work_note(req.id, "bob", "Follow-up check")
        assert len(updated.work_notes) == 1

    @pytest.mark.parametrize(
        "technician,note,hours",
        [
            ("bob", "", 1),
            ("bob", "x" * 1001, 1),
            ("bob", "ok", 25),
            ("bob", "ok", -1),
            ("bob", "ok", "2"),
            ("bob", "ok", True),
            ("bob", ["ok"], 1),
            (None, "ok", 1),
        ],
    )
    def test_invalid_notes(self, engine, new_request, technician, note, hours):
        req = new_request()
        with pytest.raises(InvalidRequest):
            engine.add_work_note(req.id, technician, note, hours)


# =============================================================================
# Scheduling queries
# =============================================================================


class TestSchedulingQueries:
    def test_next_due_from_last_maintenance(self, engine):
        assert engine.compute_next_due("press-1") == datetime(2024, 4, 1)

    def test_next_due_from_now_when_never_maintained(self, engine):
        assert engine.compute_next_due("pump-4", now=datetime(2024, 4, 15)) == datetime(2024, 4, 29)

    def test_next_due_without_schedule(self, engine):
        with pytest.raises(InvalidSchedule):
            engine.compute_next_due("panel-2")

    def test_next_due_unknown_equipment(self, engine):
        with pytest.raises(NotFound):
            engine.compute_next_due("nope")

    def test_is_overdue(self, engine, new_request):
        req = new_request(scheduled_date=datetime(2024, 4, 20, 9, 0))
        assert not engine.is_overdue(req.id, datetime(2024, 4, 19))
        assert engine.is_overdue(req.id, datetime(2024, 4, 21))
        engine.transition(req.id, Status.COMPLETED, now=datetime(2024, 4, 22))
        assert not engine.is_overdue(req.id, datetime(2024, 4, 23))
