"""
Progress pipeline entry point.

raw record → game-mode partition → formatter → hideout grants → invalidator

Re-run from scratch on every read; nothing computed here is persisted.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..errors import CatalogUnavailableError
from ..state.constants import (
    DEFAULT_GAME_MODE,
    HIDEOUT_MODULES,
    HIDEOUT_PARTS,
    TASK_COMPLETIONS,
    TASK_OBJECTIVES,
)
from ..state.schema import FormattedProgress, HideoutData, TaskData
from .formatting import format_entries, initialize_base_progress, process_hideout_stations
from .game_modes import extract_game_mode_data
from .invalidation import invalidate_tasks


def format_progress(
    document: Mapping[str, Any] | None,
    user_id: str,
    hideout_data: HideoutData | None,
    task_data: TaskData | None,
    game_mode: str = DEFAULT_GAME_MODE,
) -> FormattedProgress:
    """
    Format one user's stored record into a consistent progress view.

    Args:
        document: Raw stored record (None for a never-saved user)
        user_id: Owner of the record
        hideout_data: Hideout station catalog
        task_data: Task catalog
        game_mode: Partition to read

    Returns:
        A fresh FormattedProgress. A missing record yields defaulted
        identity fields, empty lists and any edition-granted hideout levels.

    Raises:
        CatalogUnavailableError: if either catalog is None
    """
    if hideout_data is None:
        raise CatalogUnavailableError("hideout")
    if task_data is None:
        raise CatalogUnavailableError("tasks")

    partition = extract_game_mode_data(document, game_mode)
    progress = initialize_base_progress(partition, user_id, document)

    raw = partition or {}
    progress.tasks_progress = format_entries(raw.get(TASK_COMPLETIONS))
    progress.task_objectives_progress = format_entries(raw.get(TASK_OBJECTIVES), show_count=True)
    progress.hideout_modules_progress = format_entries(raw.get(HIDEOUT_MODULES))
    progress.hideout_parts_progress = format_entries(raw.get(HIDEOUT_PARTS), show_count=True)

    process_hideout_stations(progress, hideout_data, user_id)

    return invalidate_tasks(progress, task_data, progress.pmc_faction, user_id)
