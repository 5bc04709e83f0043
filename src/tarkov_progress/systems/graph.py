"""
Successor graph over the task catalog.

Built once per catalog and shared read-only between invocations. A task's
successors are the union of:
- its own ``successors`` list
- tasks listing it in ``predecessors``
- tasks with a ``complete`` or ``active`` requirement on it

Failed-status requirements are not propagation edges: invalidating a task
does not cascade into tasks that wanted it to fail.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from ..state.schema import Task, TaskData


PROPAGATING_STATUSES = frozenset({"complete", "active"})


@dataclass
class TaskGraph:
    """Adjacency lists keyed by task id. Edge order follows catalog order."""
    tasks: dict[str, "Task"] = field(default_factory=dict)
    successors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_task_data(cls, task_data: "TaskData") -> "TaskGraph":
        graph = cls()
        for task in task_data.tasks:
            graph.tasks.setdefault(task.id, task)

        for task in task_data.tasks:
            for successor_id in task.successors:
                graph._add_edge(task.id, successor_id)
            for predecessor_id in task.predecessors:
                graph._add_edge(predecessor_id, task.id)
            for requirement in task.task_requirements:
                if not requirement.task:
                    continue
                if PROPAGATING_STATUSES.intersection(requirement.status):
                    graph._add_edge(requirement.task, task.id)

        return graph

    def _add_edge(self, source: str, target: str) -> None:
        targets = self.successors.setdefault(source, [])
        if target not in targets:
            targets.append(target)

    def successors_of(self, task_id: str) -> list[str]:
        return self.successors.get(task_id, [])

    def objectives_of(self, task_id: str) -> list[str]:
        task = self.tasks.get(task_id)
        return list(task.objectives) if task else []

    def descendants(self, task_id: str, include_self: bool = False) -> list[str]:
        """
        Breadth-first closure over successor edges.

        Each reachable task appears once, even on cyclic graphs.
        """
        return list(self.walk([task_id], include_roots=include_self))

    def walk(self, roots: Iterable[str], include_roots: bool = True) -> Iterator[str]:
        visited: set[str] = set()
        queue: deque[str] = deque()

        for root in roots:
            if root in visited:
                continue
            visited.add(root)
            if include_roots:
                yield root
            queue.append(root)

        while queue:
            current = queue.popleft()
            for successor_id in self.successors_of(current):
                if successor_id in visited:
                    continue
                visited.add(successor_id)
                yield successor_id
                queue.append(successor_id)
