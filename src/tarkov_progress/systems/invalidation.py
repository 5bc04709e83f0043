"""
Dependency graph invalidator.

Marks tasks (and their objectives) invalid when the static ruleset says a
stored completion cannot stand:

1. Faction gate: the task belongs to the other PMC faction
2. Alternative exclusivity: one of its alternatives is completed
3. Requirement satisfaction: a required task is not in a required state

An invalid task cascades to every successor in the catalog's TaskGraph.
Rules are evaluated once per task against the progress as it was read,
before any invalidation. Every failing task then seeds one closure over
the graph. Invalidated entries are never fed back into the rules, so a
foreclosed alternative (stored complete and failed) keeps satisfying the
tasks that wanted it failed. The result does not depend on catalog order.

Pure function design: inputs are copied, never mutated. Invalidity is a
derived annotation and is never written back to a store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..errors import CatalogUnavailableError
from ..state.schema import FormattedProgress, ProgressEntry

if TYPE_CHECKING:
    from ..state.schema import Task, TaskData, TaskRequirement
    from .graph import TaskGraph

logger = logging.getLogger(__name__)


# ─── Working Copy ───────────────────────────────────────────

class InvalidationLedger:
    """
    Indexed working copy of task and objective entries.

    Entries are copied on construction so callers' lists are untouched.
    Insertion order is kept; synthesized entries go to the end.
    """

    def __init__(
        self,
        tasks_progress: Iterable[ProgressEntry],
        objectives_progress: Iterable[ProgressEntry],
    ):
        self.tasks: dict[str, ProgressEntry] = {}
        self.objectives: dict[str, ProgressEntry] = {}
        for entry in tasks_progress:
            self.tasks.setdefault(entry.id, entry.model_copy())
        for entry in objectives_progress:
            self.objectives.setdefault(entry.id, entry.model_copy())

    def is_invalid(self, task_id: str) -> bool:
        entry = self.tasks.get(task_id)
        return bool(entry and entry.invalid)

    def invalidate(self, task_id: str, objective_ids: Iterable[str]) -> bool:
        """Mark a task and its objectives invalid. Returns True if newly invalid."""
        entry = self.tasks.get(task_id)
        newly_invalid = not (entry and entry.invalid)
        if entry is None:
            self.tasks[task_id] = ProgressEntry(id=task_id, complete=False, invalid=True)
        else:
            entry.mark_invalid()

        for objective_id in objective_ids:
            objective = self.objectives.get(objective_id)
            if objective is None:
                self.objectives[objective_id] = ProgressEntry(
                    id=objective_id, complete=False, count=0, invalid=True,
                )
            else:
                objective.mark_invalid()

        return newly_invalid

    def tasks_list(self) -> list[ProgressEntry]:
        return list(self.tasks.values())

    def objectives_list(self) -> list[ProgressEntry]:
        return list(self.objectives.values())


def _require_graph(task_data: "TaskData | None") -> "TaskGraph":
    if task_data is None:
        raise CatalogUnavailableError("tasks")
    return task_data.graph()


def _cascade(
    graph: "TaskGraph",
    ledger: InvalidationLedger,
    roots: Iterable[str],
    child_only: bool = False,
) -> list[str]:
    """Invalidate the closure of ``roots``. Returns the newly invalidated ids."""
    newly_invalid: list[str] = []
    for task_id in graph.walk(roots, include_roots=not child_only):
        if ledger.invalidate(task_id, graph.objectives_of(task_id)):
            newly_invalid.append(task_id)
    return newly_invalid


# ─── Recursive Primitive ────────────────────────────────────

def invalidate_task_recursive(
    task_id: str,
    task_data: "TaskData | None",
    tasks_progress: Iterable[ProgressEntry],
    objectives_progress: Iterable[ProgressEntry],
    child_only: bool = False,
) -> tuple[list[ProgressEntry], list[ProgressEntry]]:
    """
    Invalidate one task and cascade to all of its successors.

    Args:
        task_id: Catalog task to invalidate
        task_data: Static task catalog
        tasks_progress: Current task entries (not mutated)
        objectives_progress: Current objective entries (not mutated)
        child_only: Leave the task's own entry alone and only cascade
            into its successors

    Returns:
        New (tasks, objectives) lists. Tasks or objectives reached without
        an existing entry get a synthesized ``complete=False, invalid=True``
        entry. Unknown task ids leave the lists unchanged.
    """
    graph = _require_graph(task_data)
    ledger = InvalidationLedger(tasks_progress, objectives_progress)

    if task_id not in graph.tasks:
        logger.debug(f"Ignoring invalidation of unknown task {task_id}")
        return ledger.tasks_list(), ledger.objectives_list()

    invalidated = _cascade(graph, ledger, [task_id], child_only=child_only)
    logger.debug(
        f"Invalidated {len(invalidated)} task(s) from {task_id}"
        f"{' (successors only)' if child_only else ''}"
    )
    return ledger.tasks_list(), ledger.objectives_list()


# ─── Rule Evaluation ────────────────────────────────────────

def requirement_met(requirement: "TaskRequirement", ledger: InvalidationLedger) -> bool:
    """
    Whether the required task is in one of the required states.

    - complete: completed and not failed
    - failed: completed with a failed outcome
    - active: not failed and not invalid (available or done)
    """
    if not requirement.task or not requirement.status:
        return True

    entry = ledger.tasks.get(requirement.task)
    for status in requirement.status:
        if status == "complete" and entry is not None and entry.is_completed:
            return True
        if status == "failed" and entry is not None and entry.is_failed:
            return True
        if status == "active" and not (entry is not None and (entry.failed or entry.invalid)):
            return True
    return False


def evaluate_task(task: "Task", ledger: InvalidationLedger, pmc_faction: str) -> list[str]:
    """
    Check every rule for one task and return the reasons it is invalid.

    All rules are evaluated; an empty list means the task stands.
    """
    reasons: list[str] = []

    if task.is_faction_specific and task.faction_name != pmc_faction:
        reasons.append(f"faction {task.faction_name} (player is {pmc_faction})")

    for alternative_id in task.alternatives:
        entry = ledger.tasks.get(alternative_id)
        if entry is not None and entry.is_completed:
            reasons.append(f"alternative {alternative_id} completed")

    for requirement in task.task_requirements:
        if not requirement_met(requirement, ledger):
            reasons.append(
                f"requires {requirement.task} to be {' or '.join(requirement.status)}"
            )

    return reasons


def explain_invalidation(
    progress: FormattedProgress,
    task_data: "TaskData | None",
    pmc_faction: str | None = None,
) -> dict[str, list[str]]:
    """Direct rule failures per task against ``progress`` as it stands."""
    graph = _require_graph(task_data)
    ledger = InvalidationLedger(progress.tasks_progress, progress.task_objectives_progress)
    faction = pmc_faction or progress.pmc_faction

    explanations: dict[str, list[str]] = {}
    for task_id, task in graph.tasks.items():
        reasons = evaluate_task(task, ledger, faction)
        if reasons:
            explanations[task_id] = reasons
    return explanations


# ─── Whole-record Pass ──────────────────────────────────────

def invalidate_tasks(
    progress: FormattedProgress,
    task_data: "TaskData | None",
    pmc_faction: str | None = None,
    user_id: str | None = None,
) -> FormattedProgress:
    """
    Apply faction, alternative and requirement rules to every catalog task.

    Args:
        progress: Formatted progress (not mutated)
        task_data: Static task catalog
        pmc_faction: Player faction; defaults to ``progress.pmc_faction``
        user_id: Log attribution only

    Returns:
        A new FormattedProgress with invalid tasks and objectives marked.

    Raises:
        CatalogUnavailableError: if ``task_data`` is None
    """
    graph = _require_graph(task_data)
    result = progress.model_copy(deep=True)
    faction = pmc_faction or result.pmc_faction
    who = user_id or result.user_id

    ledger = InvalidationLedger(result.tasks_progress, result.task_objectives_progress)

    # Entries already marked invalid still cascade to their successors
    seeds = [task_id for task_id, entry in ledger.tasks.items() if entry.invalid]
    for task_id, task in graph.tasks.items():
        if ledger.is_invalid(task_id):
            continue
        reasons = evaluate_task(task, ledger, faction)
        if reasons:
            logger.debug(f"[{who}] {task_id} invalid: {'; '.join(reasons)}")
            seeds.append(task_id)

    if seeds:
        total = len(_cascade(graph, ledger, seeds))
        logger.debug(f"[{who}] {total} task(s) invalidated from {len(seeds)} rule failure(s)")

    result.tasks_progress = ledger.tasks_list()
    result.task_objectives_progress = ledger.objectives_list()
    return result
