#!/usr/bin/env python3
"""Tests for Status/Stage enums and the stage mapping."""

import pytest

from maintenance import Stage, Status, TERMINAL_STATUSES, stage_for
from maintenance.status import STAGE_TO_STATUS


class TestStageMapping:
    """Every status maps to exactly one stage, the same one every time."""

    @pytest.mark.parametrize("status", list(Status))
    def test_total_and_stable(self, status):
        first = stage_for(status)
        assert isinstance(first, Stage)
        assert all(stage_for(status) is first for _ in range(3))
        assert status.stage is first

    def test_in_progress_collapses_four_statuses(self):
        collapsed = [s for s in Status if stage_for(s) is Stage.IN_PROGRESS]
        assert collapsed == [
            Status.ASSIGNED,
            Status.IN_PROGRESS,
            Status.WAITING_FOR_PARTS,
            Status.ON_HOLD,
        ]

    def test_terminal_stages(self):
        assert stage_for(Status.COMPLETED) is Stage.REPAIRED
        assert stage_for(Status.CANCELLED) is Stage.SCRAP
        assert stage_for(Status.REJECTED) is Stage.SCRAP
        assert stage_for(Status.NEW) is Stage.NEW

    def test_board_writes_back_only_canonical_statuses(self):
        assert set(STAGE_TO_STATUS.values()) == {
            Status.NEW,
            Status.IN_PROGRESS,
            Status.COMPLETED,
            Status.CANCELLED,
        }
        for stage, status in STAGE_TO_STATUS.items():
            assert stage_for(status) is stage


class TestTerminal:
    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {Status.COMPLETED, Status.CANCELLED, Status.REJECTED}
        assert all(s.is_terminal for s in TERMINAL_STATUSES)
        assert not Status.ON_HOLD.is_terminal

    def test_terminal_stages(self):
        assert Stage.REPAIRED.is_terminal and Stage.SCRAP.is_terminal
        assert not Stage.NEW.is_terminal and not Stage.IN_PROGRESS.is_terminal

    def test_values_match_display_names(self):
        assert Status("Waiting for Parts") is Status.WAITING_FOR_PARTS
        assert Stage("in-progress") is Stage.IN_PROGRESS
