"""
Pydantic models for the static game catalog and formatted progress.

Catalog models accept the game API's camelCase payloads as well as
snake_case keyword arguments. Formatted progress is built fresh on every
read and serialized back to camelCase with ``to_payload()``.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .constants import ANY_FACTION


def _id_of(value: Any) -> Any:
    """Unwrap ``{"id": ...}`` references used by the game API."""
    if isinstance(value, dict):
        return value.get("id")
    return value


class CatalogModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Tasks
# -----------------------------------------------------------------------------

class TaskRequirement(CatalogModel):
    """Directed edge: this task needs ``task`` to be in one of ``status``."""
    task: str | None = None
    status: list[str] = Field(default_factory=list)

    @field_validator("task", mode="before")
    @classmethod
    def _unwrap_task(cls, value: Any) -> Any:
        return _id_of(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return value or []


class Task(CatalogModel):
    """A quest definition with its requirement and exclusivity edges."""
    id: str
    name: str = ""
    predecessors: list[str] = Field(default_factory=list)
    successors: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    faction_name: str = ANY_FACTION
    kappa_required: bool = False
    lightkeeper_required: bool = False
    task_requirements: list[TaskRequirement] = Field(default_factory=list)
    objectives: list[str] = Field(default_factory=list)

    @field_validator("predecessors", "successors", "alternatives", "objectives", mode="before")
    @classmethod
    def _unwrap_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        return [_id_of(item) for item in value if _id_of(item)]

    @field_validator("task_requirements", mode="before")
    @classmethod
    def _drop_null_requirements(cls, value: Any) -> Any:
        if value is None:
            return []
        return [item for item in value if item is not None]

    @field_validator("faction_name", mode="before")
    @classmethod
    def _default_faction(cls, value: Any) -> Any:
        return value or ANY_FACTION

    @property
    def is_faction_specific(self) -> bool:
        return self.faction_name != ANY_FACTION


class TaskData(CatalogModel):
    """Task catalog. The successor graph is built once and cached."""
    tasks: list[Task] = Field(default_factory=list)

    _graph: Any = PrivateAttr(default=None)

    @field_validator("tasks", mode="before")
    @classmethod
    def _default_tasks(cls, value: Any) -> Any:
        return value or []

    def graph(self):
        """Return the cached :class:`TaskGraph` for this catalog."""
        if self._graph is None:
            from ..systems.graph import TaskGraph
            self._graph = TaskGraph.from_task_data(self)
        return self._graph

    def get(self, task_id: str) -> Task | None:
        return self.graph().tasks.get(task_id)


# -----------------------------------------------------------------------------
# Hideout
# -----------------------------------------------------------------------------

class HideoutItemRequirement(CatalogModel):
    id: str
    count: int = 0


class HideoutLevel(CatalogModel):
    id: str
    level: int
    item_requirements: list[HideoutItemRequirement] = Field(default_factory=list)

    @field_validator("item_requirements", mode="before")
    @classmethod
    def _default_items(cls, value: Any) -> Any:
        return value or []


class HideoutStation(CatalogModel):
    id: str
    name: str = ""
    levels: list[HideoutLevel] = Field(default_factory=list)

    @field_validator("levels", mode="before")
    @classmethod
    def _sort_levels(cls, value: Any) -> Any:
        if not value:
            return []
        return sorted(
            value,
            key=lambda lvl: lvl.get("level", 0) if isinstance(lvl, dict) else lvl.level,
        )


class HideoutData(CatalogModel):
    hideout_stations: list[HideoutStation] = Field(default_factory=list)

    @field_validator("hideout_stations", mode="before")
    @classmethod
    def _default_stations(cls, value: Any) -> Any:
        return value or []

    def station(self, station_id: str) -> HideoutStation | None:
        for station in self.hideout_stations:
            if station.id == station_id:
                return station
        return None


# -----------------------------------------------------------------------------
# Formatted progress
# -----------------------------------------------------------------------------

class ProgressEntry(BaseModel):
    """
    Progress for one task, objective, hideout module or hideout part.

    Optional fields stay ``None`` when not applicable and are omitted on
    serialization. An invalid entry is never complete.
    """
    id: str
    complete: bool = False
    failed: bool | None = None
    invalid: bool | None = None
    count: int | None = None
    timestamp: int | None = None

    @model_validator(mode="after")
    def _invalid_is_incomplete(self) -> "ProgressEntry":
        if self.invalid:
            self.complete = False
        return self

    @property
    def is_completed(self) -> bool:
        """Complete and not failed."""
        return self.complete and not self.failed

    @property
    def is_failed(self) -> bool:
        """Complete with a failed outcome."""
        return self.complete and bool(self.failed)

    def mark_invalid(self) -> None:
        self.invalid = True
        self.complete = False

    def mark_complete(self, count: int | None = None) -> None:
        self.complete = True
        self.failed = None
        self.invalid = None
        if count is not None:
            self.count = count


class FormattedProgress(BaseModel):
    """Display-ready progress for one user and one game mode."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ENTRY_LISTS: ClassVar[tuple[str, ...]] = (
        "tasks_progress",
        "task_objectives_progress",
        "hideout_modules_progress",
        "hideout_parts_progress",
    )

    user_id: str
    display_name: str
    player_level: int
    game_edition: int
    pmc_faction: str
    tasks_progress: list[ProgressEntry] = Field(default_factory=list)
    task_objectives_progress: list[ProgressEntry] = Field(default_factory=list)
    hideout_modules_progress: list[ProgressEntry] = Field(default_factory=list)
    hideout_parts_progress: list[ProgressEntry] = Field(default_factory=list)

    def task(self, task_id: str) -> ProgressEntry | None:
        return next((e for e in self.tasks_progress if e.id == task_id), None)

    def objective(self, objective_id: str) -> ProgressEntry | None:
        return next((e for e in self.task_objectives_progress if e.id == objective_id), None)

    def module(self, module_id: str) -> ProgressEntry | None:
        return next((e for e in self.hideout_modules_progress if e.id == module_id), None)

    def part(self, part_id: str) -> ProgressEntry | None:
        return next((e for e in self.hideout_parts_progress if e.id == part_id), None)

    def all_entries(self) -> list[ProgressEntry]:
        entries: list[ProgressEntry] = []
        for name in self.ENTRY_LISTS:
            entries.extend(getattr(self, name))
        return entries

    def to_payload(self) -> dict:
        """Serialize with the game API's camelCase names, omitting unset flags."""
        return self.model_dump(by_alias=True, exclude_none=True)


# -----------------------------------------------------------------------------
# Team view
# -----------------------------------------------------------------------------

class TeamMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    self_id: str = Field(alias="self")
    hidden_teammates: list[str] = Field(default_factory=list)


class TeamProgress(BaseModel):
    data: list[FormattedProgress] = Field(default_factory=list)
    meta: TeamMeta

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
