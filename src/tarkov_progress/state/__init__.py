"""State management for player progress."""

from .constants import (
    CULTIST_CIRCLE_STATION_ID,
    GAME_EDITIONS,
    STASH_STATION_ID,
    GameEdition,
    GameMode,
    PmcFaction,
)
from .schema import (
    FormattedProgress,
    HideoutData,
    HideoutItemRequirement,
    HideoutLevel,
    HideoutStation,
    ProgressEntry,
    Task,
    TaskData,
    TaskRequirement,
    TeamMeta,
    TeamProgress,
)
from .store import (
    DELETE_FIELD,
    JsonProgressStore,
    MemoryProgressStore,
    ProgressStore,
    apply_dotted_update,
)
from .catalog import load_hideout_data, load_task_data
from .manager import ProgressManager

__all__ = [
    # Constants
    "CULTIST_CIRCLE_STATION_ID",
    "GAME_EDITIONS",
    "STASH_STATION_ID",
    "GameEdition",
    "GameMode",
    "PmcFaction",
    # Schema
    "FormattedProgress",
    "HideoutData",
    "HideoutItemRequirement",
    "HideoutLevel",
    "HideoutStation",
    "ProgressEntry",
    "Task",
    "TaskData",
    "TaskRequirement",
    "TeamMeta",
    "TeamProgress",
    # Store
    "DELETE_FIELD",
    "JsonProgressStore",
    "MemoryProgressStore",
    "ProgressStore",
    "apply_dotted_update",
    # Catalog
    "load_hideout_data",
    "load_task_data",
    # Manager
    "ProgressManager",
]
