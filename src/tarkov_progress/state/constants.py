"""
Static game constants shared by the formatter, invalidator and manager.

Station ids match the game API catalog. Edition data mirrors the
purchase tiers the game sells: each tier starts with a bigger stash.
"""

from enum import Enum
from typing import NamedTuple


# -----------------------------------------------------------------------------
# Hideout
# -----------------------------------------------------------------------------

STASH_STATION_ID = "5d484fc0654e76006657e0ab"
CULTIST_CIRCLE_STATION_ID = "667298e75ea6b4493c08f266"


# -----------------------------------------------------------------------------
# Game Editions
# -----------------------------------------------------------------------------

class GameEdition(NamedTuple):
    version: int
    name: str
    default_stash_level: int


GAME_EDITIONS: dict[int, GameEdition] = {
    1: GameEdition(1, "Standard Edition", 1),
    2: GameEdition(2, "Left Behind Edition", 2),
    3: GameEdition(3, "Prepare for Escape Edition", 3),
    4: GameEdition(4, "Edge of Darkness Edition", 4),
    5: GameEdition(5, "Unheard Edition", 5),
}

DEFAULT_GAME_EDITION = 1
MIN_GAME_EDITION = min(GAME_EDITIONS)
MAX_GAME_EDITION = max(GAME_EDITIONS)  # Only this tier unlocks the Cultist Circle


def edition_name(version: int | None) -> str:
    """Human-readable edition name, e.g. for the inspection CLI."""
    if not version:
        return "N/A"
    edition = GAME_EDITIONS.get(version)
    return edition.name if edition else f"Edition {version}"


# -----------------------------------------------------------------------------
# Player
# -----------------------------------------------------------------------------

class PmcFaction(str, Enum):
    USEC = "USEC"
    BEAR = "BEAR"


ANY_FACTION = "Any"
DEFAULT_PMC_FACTION = PmcFaction.USEC.value
DEFAULT_PLAYER_LEVEL = 1
MAX_PLAYER_LEVEL = 79
DISPLAY_NAME_FALLBACK_LENGTH = 6
MAX_DISPLAY_NAME_LENGTH = 50


# -----------------------------------------------------------------------------
# Game Modes
# -----------------------------------------------------------------------------

class GameMode(str, Enum):
    """Independently tracked progress partitions within one record."""
    PVP = "pvp"
    PVE = "pve"


DEFAULT_GAME_MODE = GameMode.PVP.value
CURRENT_GAME_MODE_KEY = "currentGameMode"


# -----------------------------------------------------------------------------
# Raw record field names (store documents use the game API's camelCase)
# -----------------------------------------------------------------------------

TASK_COMPLETIONS = "taskCompletions"
TASK_OBJECTIVES = "taskObjectives"
HIDEOUT_MODULES = "hideoutModules"
HIDEOUT_PARTS = "hideoutParts"
