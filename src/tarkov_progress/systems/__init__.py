"""
Progress consistency systems.

Each system is a pure function over catalog data and progress records;
persistence stays in the state package.
"""

from .graph import TaskGraph
from .formatting import (
    coerce_game_edition,
    coerce_pmc_faction,
    format_entries,
    initialize_base_progress,
    process_hideout_stations,
)
from .game_modes import extract_game_mode_data, normalize_game_mode
from .invalidation import (
    evaluate_task,
    explain_invalidation,
    invalidate_task_recursive,
    invalidate_tasks,
)
from .progress import format_progress
from .task_state import (
    ObjectiveState,
    TaskState,
    build_task_update,
    plan_task_state_update,
)
from .team import aggregate_team_progress

__all__ = [
    "TaskGraph",
    # Formatter
    "coerce_game_edition",
    "coerce_pmc_faction",
    "format_entries",
    "initialize_base_progress",
    "process_hideout_stations",
    # Game modes
    "extract_game_mode_data",
    "normalize_game_mode",
    # Invalidator
    "evaluate_task",
    "explain_invalidation",
    "invalidate_task_recursive",
    "invalidate_tasks",
    # Pipeline
    "format_progress",
    # Task updates
    "ObjectiveState",
    "TaskState",
    "build_task_update",
    "plan_task_state_update",
    # Team
    "aggregate_team_progress",
]
