"""
Progress manager: reads and writes one user's progress.

Wraps a ProgressStore and the static catalogs. Reads run the full
consistency pipeline; writes validate input, build dotted updates and
apply them in one store call, then apply the knock-on task updates in a
second call.
"""

import logging
import re
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from ..errors import CatalogUnavailableError, InvalidUpdateError
from ..systems.formatting import coerce_game_edition, coerce_pmc_faction
from ..systems.game_modes import extract_game_mode_data, normalize_game_mode, partition_path
from ..systems.progress import format_progress
from ..systems.task_state import (
    build_objective_update,
    build_task_update,
    parse_task_state,
    plan_task_state_update,
)
from ..systems.team import aggregate_team_progress, team_member_ids
from .constants import (
    CURRENT_GAME_MODE_KEY,
    DEFAULT_GAME_MODE,
    MAX_DISPLAY_NAME_LENGTH,
    MAX_PLAYER_LEVEL,
    TASK_COMPLETIONS,
)
from .schema import FormattedProgress, HideoutData, TaskData, TeamProgress
from .store import JsonProgressStore, ProgressStore, validate_user_id

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[<>\"'&]")


def now_ms() -> int:
    return int(time.time() * 1000)


def _validate_entity_id(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidUpdateError(f"{label} is required and must be a non-empty string")
    return value.strip()


class ProgressManager:
    """
    Manages progress reads and writes for users.

    Storage is delegated to a ProgressStore implementation:
    - JsonProgressStore for production (file-based)
    - MemoryProgressStore for testing (in-memory)
    """

    def __init__(
        self,
        store: ProgressStore | Path | str = "progress",
        task_data: TaskData | None = None,
        hideout_data: HideoutData | None = None,
        game_mode: str = DEFAULT_GAME_MODE,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize with a store and catalogs.

        Args:
            store: ProgressStore instance, or path for JsonProgressStore
            task_data: Task catalog (required for reads and task writes)
            hideout_data: Hideout catalog (required for reads)
            game_mode: Partition used when a call does not name one
            clock: Millisecond timestamp source for update timestamps
        """
        if isinstance(store, (Path, str)):
            store = JsonProgressStore(store)
        self.store = store
        self.task_data = task_data
        self.hideout_data = hideout_data
        self.game_mode = normalize_game_mode(game_mode)
        self._clock = clock

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _mode(self, game_mode: str | None) -> str:
        return normalize_game_mode(game_mode or self.game_mode)

    def _require_tasks(self) -> TaskData:
        if self.task_data is None:
            logger.error("Task catalog not loaded")
            raise CatalogUnavailableError("tasks")
        return self.task_data

    def _require_hideout(self) -> HideoutData:
        if self.hideout_data is None:
            logger.error("Hideout catalog not loaded")
            raise CatalogUnavailableError("hideout")
        return self.hideout_data

    def _commit(
        self,
        user_id: str,
        document: Mapping[str, Any] | None,
        mode: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any]:
        updates = dict(updates)
        if document is None:
            # New records start partitioned
            updates = {CURRENT_GAME_MODE_KEY: mode, **updates}
        if updates:
            self.store.apply_update(user_id, updates)
        return updates

    def _write_scalar(self, user_id: str, field: str, value: Any, game_mode: str | None) -> None:
        user_id = validate_user_id(user_id)
        mode = self._mode(game_mode)
        document = self.store.load(user_id)
        prefix = partition_path(document, mode)
        self._commit(user_id, document, mode, {f"{prefix}{field}": value})
        logger.info(f"Set {field}={value!r} for {user_id} ({mode})")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_progress(self, user_id: str, game_mode: str | None = None) -> FormattedProgress:
        """Format the user's stored record. Never-saved users get defaults."""
        user_id = validate_user_id(user_id)
        mode = self._mode(game_mode)
        hideout_data = self._require_hideout()
        task_data = self._require_tasks()

        document = self.store.load(user_id)
        partition = extract_game_mode_data(document, mode) or {}
        stored_edition = partition.get("gameEdition")
        if stored_edition is not None and coerce_game_edition(stored_edition) is None:
            logger.warning(
                f"Malformed gameEdition {stored_edition!r} for {user_id} ({mode}); using fallback"
            )

        return format_progress(document, user_id, hideout_data, task_data, mode)

    def get_team_progress(
        self,
        user_id: str,
        member_ids: Iterable[str] | None = None,
        hidden: Mapping[str, bool] | Iterable[str] | None = None,
        game_mode: str | None = None,
    ) -> TeamProgress:
        """Format every team member's progress with the same catalogs."""
        user_id = validate_user_id(user_id)
        mode = self._mode(game_mode)
        members = team_member_ids(user_id, member_ids)
        documents = {member_id: self.store.load(member_id) for member_id in members}
        return aggregate_team_progress(
            documents,
            user_id,
            members,
            self._require_hideout(),
            self._require_tasks(),
            mode,
            hidden,
        )

    # -------------------------------------------------------------------------
    # Player fields
    # -------------------------------------------------------------------------

    def set_player_level(self, user_id: str, level: Any, game_mode: str | None = None) -> int:
        try:
            level = int(str(level).strip())
        except ValueError:
            level = 0
        if level < 1 or level > MAX_PLAYER_LEVEL:
            raise InvalidUpdateError(f"Level must be a number between 1 and {MAX_PLAYER_LEVEL}")
        self._write_scalar(user_id, "level", level, game_mode)
        return level

    def set_game_edition(self, user_id: str, edition: Any, game_mode: str | None = None) -> int:
        normalized = coerce_game_edition(edition)
        if normalized is None:
            raise InvalidUpdateError(f"Invalid game edition: {edition!r}")
        self._write_scalar(user_id, "gameEdition", normalized, game_mode)
        return normalized

    def set_pmc_faction(self, user_id: str, faction: Any, game_mode: str | None = None) -> str:
        normalized = coerce_pmc_faction(faction)
        if normalized is None:
            raise InvalidUpdateError(f"Invalid PMC faction: {faction!r}")
        self._write_scalar(user_id, "pmcFaction", normalized, game_mode)
        return normalized

    def set_display_name(self, user_id: str, display_name: Any, game_mode: str | None = None) -> str:
        if not isinstance(display_name, str):
            raise InvalidUpdateError("Display name must be a string")
        cleaned = _UNSAFE_NAME_CHARS.sub("", display_name.strip())
        if not cleaned:
            raise InvalidUpdateError("Display name cannot be empty")
        if len(cleaned) > MAX_DISPLAY_NAME_LENGTH:
            raise InvalidUpdateError(
                f"Display name cannot exceed {MAX_DISPLAY_NAME_LENGTH} characters"
            )
        self._write_scalar(user_id, "displayName", cleaned, game_mode)
        return cleaned

    # -------------------------------------------------------------------------
    # Tasks & objectives
    # -------------------------------------------------------------------------

    def update_task(
        self,
        user_id: str,
        task_id: str,
        state: str,
        game_mode: str | None = None,
    ) -> dict[str, Any]:
        """
        Set one task's state, then apply dependent and alternative updates.

        Returns:
            Every field update that was written.
        """
        return self.update_tasks(user_id, [(task_id, state)], game_mode)

    def update_tasks(
        self,
        user_id: str,
        updates: Mapping[str, str] | Iterable[tuple[str, str]],
        game_mode: str | None = None,
    ) -> dict[str, Any]:
        """
        Set several task states in one write, then one write of knock-on updates.

        Every id and state is validated before anything is written.
        """
        user_id = validate_user_id(user_id)
        mode = self._mode(game_mode)
        task_data = self._require_tasks()

        pairs = list(updates.items()) if isinstance(updates, Mapping) else list(updates)
        if not pairs:
            raise InvalidUpdateError("At least one task update is required")
        validated = [
            (_validate_entity_id(task_id, "Task ID"), parse_task_state(state))
            for task_id, state in pairs
        ]

        update_time = self._clock()
        document = self.store.load(user_id)
        prefix = partition_path(document, mode)

        task_updates: dict[str, Any] = {}
        for task_id, state in validated:
            task_updates.update(build_task_update(task_id, state, update_time, prefix))
        written = self._commit(user_id, document, mode, task_updates)
        logger.info(f"Updated {len(validated)} task(s) for {user_id} ({mode})")

        # Knock-on updates read the record as it is after the direct write
        document = self.store.load(user_id)
        partition = extract_game_mode_data(document, mode) or {}
        completions = partition.get(TASK_COMPLETIONS) or {}

        dependent_updates: dict[str, Any] = {}
        for task_id, state in validated:
            dependent_updates.update(
                plan_task_state_update(
                    task_id, state, task_data, completions, update_time, prefix,
                )
            )
        if dependent_updates:
            self.store.apply_update(user_id, dependent_updates)
            logger.info(
                f"Applied {len(dependent_updates)} dependent field update(s) for {user_id}"
            )

        return {**written, **dependent_updates}

    def update_objective(
        self,
        user_id: str,
        objective_id: str,
        state: str | None = None,
        count: Any = None,
        game_mode: str | None = None,
    ) -> dict[str, Any]:
        """Set an objective's state and/or count."""
        user_id = validate_user_id(user_id)
        objective_id = _validate_entity_id(objective_id, "Objective ID")
        mode = self._mode(game_mode)

        if state is None and count is None:
            raise InvalidUpdateError("Either state or count must be provided")
        if count is not None and (
            not isinstance(count, int) or isinstance(count, bool) or count < 0
        ):
            raise InvalidUpdateError("Count must be a non-negative integer")

        document = self.store.load(user_id)
        prefix = partition_path(document, mode)
        updates = build_objective_update(
            objective_id, self._clock(), state=state, count=count, prefix=prefix,
        )
        written = self._commit(user_id, document, mode, updates)
        logger.info(f"Updated objective {objective_id} for {user_id} ({mode})")
        return written
