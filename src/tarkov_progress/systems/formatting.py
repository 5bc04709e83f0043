"""
Formatter: raw stored progress → display-ready entry lists.

Projects the per-entity maps of one game-mode partition into
``ProgressEntry`` lists, fills defaulted identity fields, and grants the
hideout levels a game edition includes out of the box.

Stored ``invalid`` flags are storage artifacts and are never read back;
invalidity is recomputed on every read by the invalidator.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..state.constants import (
    CULTIST_CIRCLE_STATION_ID,
    DEFAULT_GAME_EDITION,
    DEFAULT_PLAYER_LEVEL,
    DEFAULT_PMC_FACTION,
    DISPLAY_NAME_FALLBACK_LENGTH,
    GAME_EDITIONS,
    MAX_GAME_EDITION,
    MIN_GAME_EDITION,
    STASH_STATION_ID,
    PmcFaction,
)
from ..state.schema import FormattedProgress, HideoutData, HideoutLevel, ProgressEntry

logger = logging.getLogger(__name__)


# ─── Entry Projection ───────────────────────────────────────

def format_entries(
    raw_entries: Mapping[str, Any] | None,
    show_count: bool = False,
) -> list[ProgressEntry]:
    """
    Project a raw ``{entity_id: {...}}`` map into progress entries.

    Args:
        raw_entries: Stored per-entity facts, possibly absent
        show_count: Keep integer ``count`` values (quantity-tracked kinds)

    Returns:
        Entries in stored order. Values that are not mappings produce an
        incomplete entry rather than an error.
    """
    entries: list[ProgressEntry] = []
    if not isinstance(raw_entries, Mapping):
        return entries

    for entity_id, raw in raw_entries.items():
        raw = raw if isinstance(raw, Mapping) else {}

        complete = raw.get("complete")
        entry = ProgressEntry(
            id=str(entity_id),
            complete=complete if isinstance(complete, bool) else False,
        )

        if raw.get("failed") is True:
            entry.failed = True

        count = raw.get("count")
        if show_count and _is_int(count):
            entry.count = count

        timestamp = raw.get("timestamp")
        if _is_int(timestamp):
            entry.timestamp = timestamp

        entries.append(entry)

    return entries


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ─── Identity & Leveling ────────────────────────────────────

def coerce_game_edition(value: Any) -> int | None:
    """
    Normalize a stored edition to ``1..5``.

    Integers, integral floats and numeric strings are accepted.
    Returns None for anything else, including out-of-range values.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None

    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)

    if isinstance(value, int) and MIN_GAME_EDITION <= value <= MAX_GAME_EDITION:
        return value
    return None


def coerce_pmc_faction(value: Any) -> str | None:
    """Return the canonical faction name, or None if unrecognized."""
    if not isinstance(value, str):
        return None
    try:
        return PmcFaction(value.strip().upper()).value
    except ValueError:
        return None


def initialize_base_progress(
    partition: Mapping[str, Any] | None,
    user_id: str,
    document: Mapping[str, Any] | None = None,
) -> FormattedProgress:
    """
    Build progress with identity fields set and empty entry lists.

    The edition comes from the partition, then the root of the full
    document, then defaults to 1.
    """
    partition = partition or {}
    root = document if isinstance(document, Mapping) else {}

    game_edition = coerce_game_edition(partition.get("gameEdition"))
    if game_edition is None:
        game_edition = coerce_game_edition(root.get("gameEdition"))
    if game_edition is None:
        game_edition = DEFAULT_GAME_EDITION

    level = partition.get("level")
    if not _is_int(level) or level < 1:
        level = DEFAULT_PLAYER_LEVEL

    display_name = partition.get("displayName")
    if not isinstance(display_name, str) or not display_name:
        display_name = user_id[:DISPLAY_NAME_FALLBACK_LENGTH]

    return FormattedProgress(
        user_id=user_id,
        display_name=display_name,
        player_level=level,
        game_edition=game_edition,
        pmc_faction=coerce_pmc_faction(partition.get("pmcFaction")) or DEFAULT_PMC_FACTION,
    )


# ─── Hideout Auto-completion ────────────────────────────────

def process_hideout_stations(
    progress: FormattedProgress,
    hideout_data: HideoutData | None,
    user_id: str | None = None,
) -> FormattedProgress:
    """
    Mark hideout levels granted by the player's game edition as complete.

    - Stash: level L is granted when the edition's default stash level >= L
    - Cultist Circle: every level is granted, top edition tier only

    Granted entries override whatever was stored for them. Mutates and
    returns ``progress``.
    """
    if hideout_data is None:
        return progress

    edition = GAME_EDITIONS.get(progress.game_edition)
    default_stash_level = edition.default_stash_level if edition else 0

    stash = hideout_data.station(STASH_STATION_ID)
    if stash is not None:
        for level in stash.levels:
            if level.level <= default_stash_level:
                _grant_level(progress, level)

    if progress.game_edition == MAX_GAME_EDITION:
        circle = hideout_data.station(CULTIST_CIRCLE_STATION_ID)
        if circle is not None:
            for level in circle.levels:
                _grant_level(progress, level)

    logger.debug(
        f"Edition {progress.game_edition} hideout grants applied for "
        f"{user_id or progress.user_id} (stash level {default_stash_level})"
    )
    return progress


def _grant_level(progress: FormattedProgress, level: HideoutLevel) -> None:
    """Complete a station level and all of its item requirements."""
    module = progress.module(level.id)
    if module is None:
        progress.hideout_modules_progress.append(ProgressEntry(id=level.id, complete=True))
    else:
        module.mark_complete()

    for item in level.item_requirements:
        part = progress.part(item.id)
        if part is None:
            progress.hideout_parts_progress.append(
                ProgressEntry(id=item.id, complete=True, count=item.count)
            )
        else:
            part.mark_complete(count=item.count)
