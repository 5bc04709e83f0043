"""
Game-mode partition selection.

A stored record is one of three shapes:
- partitioned: ``currentGameMode`` plus one partition per mode (``pvp``/``pve``)
- partially migrated: ``currentGameMode`` but the fields still at the root
- legacy: the flat fields at the root

Selection returns a shallow copy so callers never touch the stored
document or the other partition.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..errors import InvalidUpdateError
from ..state.constants import CURRENT_GAME_MODE_KEY, GameMode

logger = logging.getLogger(__name__)


def normalize_game_mode(game_mode: str | GameMode | None) -> str | None:
    """Validate a requested mode key. None means "the record's current mode"."""
    if game_mode is None:
        return None
    try:
        return GameMode(game_mode).value
    except ValueError:
        raise InvalidUpdateError(
            f"Unknown game mode {game_mode!r}; expected one of "
            f"{', '.join(mode.value for mode in GameMode)}"
        ) from None


def is_partitioned(document: Mapping[str, Any]) -> bool:
    """A null or non-object mode key does not count as a partition."""
    return bool(document.get(CURRENT_GAME_MODE_KEY)) and any(
        isinstance(document.get(mode.value), Mapping) for mode in GameMode
    )


def extract_game_mode_data(
    document: Mapping[str, Any] | None,
    game_mode: str | None = None,
) -> dict | None:
    """
    Pick the partition of ``document`` that feeds the formatter.

    Args:
        document: Raw stored record, or None for a never-saved user
        game_mode: Requested partition key; defaults to the record's
            ``currentGameMode`` for partitioned records

    Returns:
        A copy of the selected partition, or None if there is nothing
        to format for the requested mode.
    """
    if not document:
        return None

    current = document.get(CURRENT_GAME_MODE_KEY)

    if is_partitioned(document):
        partition = document.get(game_mode or current)
        return dict(partition) if isinstance(partition, Mapping) else None

    if current:
        logger.debug("Record has a current game mode but no partitions; reading root fields")
        return {key: value for key, value in document.items() if key != CURRENT_GAME_MODE_KEY}

    return dict(document)


def partition_path(document: Mapping[str, Any] | None, game_mode: str) -> str:
    """
    Prefix for dotted update paths into the partition a write should target.

    Legacy and partially migrated records are written at the root, where
    they are read from. Partitioned and new records are written under the
    mode key; a new record also needs ``currentGameMode`` set by the caller.
    """
    if document and not is_partitioned(document):
        return ""
    return f"{game_mode}."
