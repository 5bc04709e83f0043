"""Tests for task state update planning."""

import pytest

from conftest import make_task_data
from tarkov_progress.errors import CatalogUnavailableError, InvalidUpdateError
from tarkov_progress.state.store import DELETE_FIELD
from tarkov_progress.systems.task_state import (
    TaskState,
    build_objective_update,
    build_task_update,
    parse_task_state,
    plan_task_state_update,
)

NOW = 1_700_000_000_000


class TestBuildTaskUpdate:
    """Test the task's own field updates."""

    def test_completed(self):
        assert build_task_update("t1", "completed", NOW) == {
            "taskCompletions.t1.complete": True,
            "taskCompletions.t1.failed": False,
            "taskCompletions.t1.timestamp": NOW,
        }

    def test_failed(self):
        updates = build_task_update("t1", TaskState.FAILED, NOW)

        assert updates["taskCompletions.t1.complete"] is True
        assert updates["taskCompletions.t1.failed"] is True

    def test_uncompleted_removes_timestamp(self):
        updates = build_task_update("t1", "uncompleted", NOW)

        assert updates["taskCompletions.t1.complete"] is False
        assert updates["taskCompletions.t1.timestamp"] is DELETE_FIELD

    def test_prefix(self):
        updates = build_task_update("t1", "completed", NOW, prefix="pve.")

        assert set(updates) == {
            "pve.taskCompletions.t1.complete",
            "pve.taskCompletions.t1.failed",
            "pve.taskCompletions.t1.timestamp",
        }

    def test_unknown_state(self):
        with pytest.raises(InvalidUpdateError, match="Invalid state"):
            parse_task_state("done")


class TestBuildObjectiveUpdate:

    def test_completed(self):
        assert build_objective_update("o1", NOW, state="completed") == {
            "taskObjectives.o1.complete": True,
            "taskObjectives.o1.timestamp": NOW,
        }

    def test_uncompleted(self):
        updates = build_objective_update("o1", NOW, state="uncompleted")

        assert updates["taskObjectives.o1.complete"] is False
        assert updates["taskObjectives.o1.timestamp"] is DELETE_FIELD

    def test_count_only(self):
        assert build_objective_update("o1", NOW, count=4, prefix="pvp.") == {
            "pvp.taskObjectives.o1.count": 4,
        }

    def test_unknown_state(self):
        with pytest.raises(InvalidUpdateError):
            build_objective_update("o1", NOW, state="failed")


class TestPlanTaskStateUpdate:
    """Test knock-on updates for dependents and alternatives."""

    def test_completion_unlocks_dependent(self, chain_tasks):
        updates = plan_task_state_update("t1", "completed", chain_tasks, {}, NOW)

        assert updates == {
            "taskCompletions.t2.complete": False,
            "taskCompletions.t2.failed": False,
            "taskCompletions.t2.timestamp": NOW,
        }

    def test_completed_dependent_left_alone(self, chain_tasks):
        completions = {"t2": {"complete": True, "failed": False}}

        assert plan_task_state_update("t1", "completed", chain_tasks, completions, NOW) == {}

    def test_unlock_waits_for_other_requirements(self):
        task_data = make_task_data(
            {"id": "a"},
            {"id": "b"},
            {"id": "both", "taskRequirements": [
                {"task": {"id": "a"}, "status": ["complete"]},
                {"task": {"id": "b"}, "status": ["complete"]},
            ]},
        )

        assert plan_task_state_update("a", "completed", task_data, {}, NOW) == {}

        completions = {"b": {"complete": True}}
        updates = plan_task_state_update("a", "completed", task_data, completions, NOW)
        assert "taskCompletions.both.complete" in updates

    def test_other_requirement_statuses(self):
        """Stored failed and active requirements count toward unlocking."""
        task_data = make_task_data(
            {"id": "a"},
            {"id": "b"},
            {"id": "c"},
            {"id": "mixed", "taskRequirements": [
                {"task": {"id": "a"}, "status": ["complete"]},
                {"task": {"id": "b"}, "status": ["failed"]},
                {"task": {"id": "c"}, "status": ["active"]},
            ]},
        )
        completions = {"b": {"complete": True, "failed": True}, "c": {"complete": False}}

        updates = plan_task_state_update("a", "completed", task_data, completions, NOW)

        assert updates["taskCompletions.mixed.complete"] is False

    def test_failure_relocks_dependent(self, chain_tasks):
        for state in ("failed", "uncompleted"):
            updates = plan_task_state_update(
                "t1", state, chain_tasks, {"t2": {"complete": True}}, NOW,
            )
            assert updates["taskCompletions.t2.complete"] is False
            assert updates["taskCompletions.t2.failed"] is False

    def test_alternatives_on_completion(self, branching_tasks):
        updates = plan_task_state_update("left", "completed", branching_tasks, {}, NOW)

        assert updates["taskCompletions.right.complete"] is True
        assert updates["taskCompletions.right.failed"] is True
        assert updates["taskCompletions.after_left.complete"] is False

    def test_alternatives_on_reset(self, branching_tasks):
        updates = plan_task_state_update("left", "uncompleted", branching_tasks, {}, NOW)

        assert updates["taskCompletions.right.complete"] is False
        assert updates["taskCompletions.right.failed"] is False

    def test_alternatives_untouched_on_failure(self, branching_tasks):
        updates = plan_task_state_update("left", "failed", branching_tasks, {}, NOW)

        assert not any(path.startswith("taskCompletions.right.") for path in updates)
        assert "taskCompletions.after_left.complete" in updates

    def test_prefix_applies_to_knock_on_updates(self, branching_tasks):
        updates = plan_task_state_update("left", "completed", branching_tasks, {}, NOW, "pvp.")

        assert all(path.startswith("pvp.taskCompletions.") for path in updates)

    def test_unknown_task(self, chain_tasks):
        assert plan_task_state_update("missing", "completed", chain_tasks, {}, NOW) == {}

    def test_missing_catalog(self):
        with pytest.raises(CatalogUnavailableError):
            plan_task_state_update("t1", "completed", None, {}, NOW)
