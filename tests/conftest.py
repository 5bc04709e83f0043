"""
Pytest fixtures for progress engine tests.

Provides small catalogs, raw records and in-memory stores.
"""

import pytest

from tarkov_progress.state import (
    CULTIST_CIRCLE_STATION_ID,
    STASH_STATION_ID,
    HideoutData,
    MemoryProgressStore,
    ProgressManager,
    TaskData,
)


class FixedClock:
    """Deterministic millisecond clock for update timestamps."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now


def make_task_data(*tasks: dict) -> TaskData:
    """Build a catalog from camelCase task dicts, as the game API sends them."""
    return TaskData.model_validate({"tasks": list(tasks)})


@pytest.fixture
def chain_tasks():
    """t1 -> t2 -> t3, each requiring the previous one complete."""
    return make_task_data(
        {"id": "t1", "successors": ["t2"], "objectives": [{"id": "o1"}]},
        {
            "id": "t2",
            "predecessors": ["t1"],
            "successors": ["t3"],
            "taskRequirements": [{"task": {"id": "t1"}, "status": ["complete"]}],
            "objectives": [{"id": "o2a"}, {"id": "o2b"}],
        },
        {
            "id": "t3",
            "predecessors": ["t2"],
            "taskRequirements": [{"task": {"id": "t2"}, "status": ["complete"]}],
            "objectives": [{"id": "o3"}],
        },
    )


@pytest.fixture
def branching_tasks():
    """
    A small catalog with a choice between two alternatives.

    root unlocks left and right; left and right exclude each other;
    after_left needs left complete. usec_only and bear_only are faction gated.
    """
    return make_task_data(
        {"id": "root", "objectives": [{"id": "root_obj"}]},
        {
            "id": "left",
            "alternatives": [{"id": "right"}],
            "taskRequirements": [{"task": {"id": "root"}, "status": ["complete"]}],
            "objectives": [{"id": "left_obj"}],
        },
        {
            "id": "right",
            "alternatives": [{"id": "left"}],
            "taskRequirements": [{"task": {"id": "root"}, "status": ["complete"]}],
            "objectives": [{"id": "right_obj"}],
        },
        {
            "id": "after_left",
            "taskRequirements": [{"task": {"id": "left"}, "status": ["complete"]}],
        },
        {"id": "usec_only", "factionName": "USEC"},
        {"id": "bear_only", "factionName": "BEAR", "objectives": [{"id": "bear_obj"}]},
    )


@pytest.fixture
def hideout_data():
    """Stash with four levels, a Cultist Circle and one ordinary station."""
    return HideoutData.model_validate({
        "hideoutStations": [
            {
                "id": STASH_STATION_ID,
                "name": "Stash",
                # Deliberately out of order; levels are sorted on load
                "levels": [
                    {"id": "stash-3", "level": 3, "itemRequirements": [{"id": "stash-3-roubles", "count": 2500000}]},
                    {"id": "stash-1", "level": 1, "itemRequirements": []},
                    {"id": "stash-2", "level": 2, "itemRequirements": [{"id": "stash-2-roubles", "count": 550000}]},
                    {"id": "stash-4", "level": 4, "itemRequirements": [{"id": "stash-4-roubles", "count": 8500000}]},
                ],
            },
            {
                "id": CULTIST_CIRCLE_STATION_ID,
                "name": "Cultist Circle",
                "levels": [
                    {"id": "circle-1", "level": 1, "itemRequirements": [{"id": "circle-1-candles", "count": 3}]},
                ],
            },
            {
                "id": "generator",
                "name": "Generator",
                "levels": [
                    {"id": "generator-1", "level": 1, "itemRequirements": [{"id": "generator-1-fuel", "count": 1}]},
                ],
            },
        ]
    })


@pytest.fixture
def empty_hideout():
    return HideoutData()


@pytest.fixture
def legacy_record():
    """Flat record written before game modes existed."""
    return {
        "displayName": "Prapor Fan",
        "level": 42,
        "gameEdition": 2,
        "pmcFaction": "bear",
        "taskCompletions": {
            "t1": {"complete": True, "timestamp": 1000},
        },
        "taskObjectives": {
            "o1": {"complete": True, "count": 5},
        },
        "hideoutModules": {
            "generator-1": {"complete": True},
        },
        "hideoutParts": {
            "generator-1-fuel": {"complete": False, "count": 0},
        },
    }


@pytest.fixture
def partitioned_record():
    """Record with separate PvP and PvE progress."""
    return {
        "currentGameMode": "pvp",
        "gameEdition": 4,
        "pvp": {
            "displayName": "PvP Main",
            "level": 30,
            "taskCompletions": {"t1": {"complete": True}},
        },
        "pve": {
            "displayName": "PvE Alt",
            "level": 12,
            "gameEdition": 1,
            "taskCompletions": {"t2": {"complete": True}},
        },
    }


@pytest.fixture
def memory_store():
    """In-memory progress store for testing."""
    return MemoryProgressStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def manager(memory_store, chain_tasks, hideout_data, clock):
    """Progress manager over the chain catalog with an in-memory store."""
    return ProgressManager(
        memory_store,
        task_data=chain_tasks,
        hideout_data=hideout_data,
        clock=clock,
    )
