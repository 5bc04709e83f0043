"""
Task state update planning.

Turns "the player set task X to state S" into the dotted field updates a
store applies: the task's own fields, then the knock-on writes for tasks
that require X and for X's alternatives.

Pure: reads the stored completions it is given and returns a mapping.
No store access happens here.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from ..errors import CatalogUnavailableError, InvalidUpdateError
from ..state.constants import TASK_COMPLETIONS, TASK_OBJECTIVES
from ..state.store import DELETE_FIELD

if TYPE_CHECKING:
    from ..state.schema import Task, TaskData

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    """States a player can set a task to."""
    COMPLETED = "completed"
    FAILED = "failed"
    UNCOMPLETED = "uncompleted"


class ObjectiveState(str, Enum):
    COMPLETED = "completed"
    UNCOMPLETED = "uncompleted"


def parse_task_state(value: Any) -> TaskState:
    try:
        return TaskState(value)
    except ValueError:
        raise InvalidUpdateError(
            f"Invalid state {value!r}. Must be 'completed', 'failed', or 'uncompleted'"
        ) from None


def parse_objective_state(value: Any) -> ObjectiveState:
    try:
        return ObjectiveState(value)
    except ValueError:
        raise InvalidUpdateError(
            f"Invalid state {value!r}. Must be 'completed' or 'uncompleted'"
        ) from None


# ─── Direct Writes ──────────────────────────────────────────

def _task_fields(
    task_id: str,
    complete: bool,
    failed: bool,
    timestamp: Any,
    prefix: str,
) -> dict[str, Any]:
    base = f"{prefix}{TASK_COMPLETIONS}.{task_id}"
    return {
        f"{base}.complete": complete,
        f"{base}.failed": failed,
        f"{base}.timestamp": timestamp,
    }


def build_task_update(
    task_id: str,
    state: TaskState | str,
    update_time: int,
    prefix: str = "",
) -> dict[str, Any]:
    """Field updates for the task itself."""
    state = parse_task_state(state)
    if state is TaskState.COMPLETED:
        return _task_fields(task_id, True, False, update_time, prefix)
    if state is TaskState.FAILED:
        return _task_fields(task_id, True, True, update_time, prefix)
    return _task_fields(task_id, False, False, DELETE_FIELD, prefix)


def build_objective_update(
    objective_id: str,
    update_time: int,
    state: ObjectiveState | str | None = None,
    count: int | None = None,
    prefix: str = "",
) -> dict[str, Any]:
    """Field updates for one task objective. ``count`` must already be validated."""
    base = f"{prefix}{TASK_OBJECTIVES}.{objective_id}"
    updates: dict[str, Any] = {}

    if state is not None:
        if parse_objective_state(state) is ObjectiveState.COMPLETED:
            updates[f"{base}.complete"] = True
            updates[f"{base}.timestamp"] = update_time
        else:
            updates[f"{base}.complete"] = False
            updates[f"{base}.timestamp"] = DELETE_FIELD

    if count is not None:
        updates[f"{base}.count"] = count

    return updates


# ─── Dependency Planning ────────────────────────────────────

def _stored_requirement_met(statuses: list[str], stored: Mapping[str, Any] | None) -> bool:
    stored = stored if isinstance(stored, Mapping) else {}
    complete = stored.get("complete")
    failed = bool(stored.get("failed"))

    if "complete" in statuses and complete is True and not failed:
        return True
    if "active" in statuses and (complete is False or (complete is True and not failed)):
        return True
    if "failed" in statuses and failed:
        return True
    return False


def _changed_requirement_met(statuses: list[str], new_state: TaskState) -> bool:
    if "complete" in statuses and new_state is TaskState.COMPLETED:
        return True
    if "failed" in statuses and new_state is TaskState.FAILED:
        return True
    if "active" in statuses and new_state in (TaskState.UNCOMPLETED, TaskState.COMPLETED):
        return True
    return False


def all_requirements_met(
    dependent: "Task",
    changed_task_id: str,
    new_state: TaskState,
    task_completions: Mapping[str, Any],
) -> bool:
    """Whether every requirement of ``dependent`` holds once the change lands."""
    for requirement in dependent.task_requirements:
        if not requirement.task:
            continue
        if requirement.task == changed_task_id:
            met = _changed_requirement_met(requirement.status, new_state)
        else:
            met = _stored_requirement_met(
                requirement.status, task_completions.get(requirement.task),
            )
        if not met:
            return False
    return True


def plan_task_state_update(
    task_id: str,
    state: TaskState | str,
    task_data: "TaskData | None",
    task_completions: Mapping[str, Any] | None,
    update_time: int,
    prefix: str = "",
) -> dict[str, Any]:
    """
    Knock-on updates after ``task_id`` moves to ``state``.

    Dependents (tasks with a ``complete`` requirement on the task):
    - completed: unlocked (reset to active) once all their requirements
      hold; dependents the player already completed are left alone
    - failed / uncompleted: re-locked (reset to active)

    Alternatives of the task:
    - completed: marked complete + failed
    - uncompleted: reset to active
    - failed: untouched

    Returns:
        Dotted field updates; empty for tasks missing from the catalog.
    """
    state = parse_task_state(state)
    if task_data is None:
        raise CatalogUnavailableError("tasks")

    changed = task_data.get(task_id)
    if changed is None:
        logger.debug(f"No catalog entry for {task_id}; no dependent updates")
        return {}

    completions = task_completions if isinstance(task_completions, Mapping) else {}
    updates: dict[str, Any] = {}

    for dependent in task_data.tasks:
        requirement = next(
            (req for req in dependent.task_requirements
             if req.task == task_id and "complete" in req.status),
            None,
        )
        if requirement is None:
            continue

        if state is TaskState.COMPLETED:
            stored = completions.get(dependent.id)
            if isinstance(stored, Mapping) and stored.get("complete") is True:
                continue
            if not all_requirements_met(dependent, task_id, state, completions):
                continue
            logger.debug(f"Unlocking {dependent.id} after {task_id} completed")
        else:
            logger.debug(f"Re-locking {dependent.id} after {task_id} became {state.value}")

        updates.update(_task_fields(dependent.id, False, False, update_time, prefix))

    for alternative_id in changed.alternatives:
        if state is TaskState.COMPLETED:
            updates.update(_task_fields(alternative_id, True, True, update_time, prefix))
        elif state is TaskState.UNCOMPLETED:
            updates.update(_task_fields(alternative_id, False, False, update_time, prefix))

    return updates
