"""Tests for game-mode partition selection."""

import pytest

from tarkov_progress.errors import InvalidUpdateError
from tarkov_progress.state.constants import GameMode
from tarkov_progress.systems.game_modes import (
    extract_game_mode_data,
    is_partitioned,
    normalize_game_mode,
    partition_path,
)


class TestNormalizeGameMode:

    def test_valid_modes(self):
        assert normalize_game_mode("pvp") == "pvp"
        assert normalize_game_mode(GameMode.PVE) == "pve"
        assert normalize_game_mode(None) is None

    def test_unknown_mode_raises(self):
        with pytest.raises(InvalidUpdateError, match="arena"):
            normalize_game_mode("arena")


class TestExtractGameModeData:
    """Test the three record shapes."""

    def test_missing_record(self):
        assert extract_game_mode_data(None) is None
        assert extract_game_mode_data({}) is None

    def test_legacy_record(self, legacy_record):
        data = extract_game_mode_data(legacy_record, "pvp")

        assert data == legacy_record
        assert data is not legacy_record

    def test_partitioned_defaults_to_current_mode(self, partitioned_record):
        data = extract_game_mode_data(partitioned_record)

        assert data["displayName"] == "PvP Main"

    def test_partitioned_requested_mode(self, partitioned_record):
        assert extract_game_mode_data(partitioned_record, "pve")["displayName"] == "PvE Alt"
        assert extract_game_mode_data(partitioned_record, "pvp")["displayName"] == "PvP Main"

    def test_requested_mode_missing(self):
        """A partitioned record without the requested partition has nothing to show."""
        document = {"currentGameMode": "pvp", "pvp": {"level": 10}}

        assert extract_game_mode_data(document, "pve") is None

    def test_partially_migrated(self):
        """currentGameMode without partitions reads the root fields."""
        document = {"currentGameMode": "pvp", "level": 20, "taskCompletions": {}}

        for mode in (None, "pvp", "pve"):
            data = extract_game_mode_data(document, mode)
            assert data == {"level": 20, "taskCompletions": {}}

    def test_null_partition_reads_root(self):
        document = {"currentGameMode": "pvp", "pvp": None, "level": 7}

        assert not is_partitioned(document)
        assert extract_game_mode_data(document, "pvp") == {"pvp": None, "level": 7}
        assert partition_path(document, "pvp") == ""

    def test_selection_does_not_touch_record(self, partitioned_record):
        data = extract_game_mode_data(partitioned_record, "pve")
        data["displayName"] = "Changed"
        data["level"] = 99

        assert partitioned_record["pve"]["displayName"] == "PvE Alt"
        assert partitioned_record["pve"]["level"] == 12
        assert partitioned_record["pvp"]["displayName"] == "PvP Main"


class TestPartitionPath:
    """Test where writes land for each record shape."""

    def test_new_record(self):
        assert partition_path(None, "pve") == "pve."

    def test_partitioned_record(self, partitioned_record):
        assert is_partitioned(partitioned_record)
        assert partition_path(partitioned_record, "pve") == "pve."

    def test_legacy_record(self, legacy_record):
        assert not is_partitioned(legacy_record)
        assert partition_path(legacy_record, "pvp") == ""

    def test_partially_migrated_record(self):
        assert partition_path({"currentGameMode": "pvp", "level": 3}, "pvp") == ""
