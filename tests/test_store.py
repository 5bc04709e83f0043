"""Tests for progress record storage."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tarkov_progress.errors import InvalidUpdateError
from tarkov_progress.state.store import (
    DELETE_FIELD,
    JsonProgressStore,
    MemoryProgressStore,
    ProgressStore,
    apply_dotted_update,
    validate_user_id,
)


class TestApplyDottedUpdate:
    """Test dotted-path updates."""

    def test_creates_intermediate_maps(self):
        document = apply_dotted_update({}, {"pvp.taskCompletions.t1.complete": True})

        assert document == {"pvp": {"taskCompletions": {"t1": {"complete": True}}}}

    def test_keeps_sibling_fields(self):
        document = {"taskCompletions": {"t1": {"complete": True, "timestamp": 5}}}

        apply_dotted_update(document, {"taskCompletions.t1.failed": True})

        assert document["taskCompletions"]["t1"] == {"complete": True, "timestamp": 5, "failed": True}

    def test_delete_field(self):
        document = {"taskCompletions": {"t1": {"complete": True, "timestamp": 5}}}

        apply_dotted_update(document, {"taskCompletions.t1.timestamp": DELETE_FIELD})

        assert document == {"taskCompletions": {"t1": {"complete": True}}}

    def test_delete_missing_path_creates_nothing(self):
        document = apply_dotted_update({}, {"taskCompletions.t1.timestamp": DELETE_FIELD})

        assert document == {}

    def test_replaces_non_map_intermediate(self):
        document = apply_dotted_update({"taskCompletions": None}, {"taskCompletions.t1.complete": True})

        assert document == {"taskCompletions": {"t1": {"complete": True}}}

    def test_rejects_invalid_flag(self):
        with pytest.raises(InvalidUpdateError, match="derived"):
            apply_dotted_update({}, {"taskCompletions.t1.invalid": True})

    def test_rejects_empty_segment(self):
        with pytest.raises(InvalidUpdateError, match="Malformed"):
            apply_dotted_update({}, {"taskCompletions..complete": True})

    def test_values_are_copied(self):
        value = {"complete": True}
        document = apply_dotted_update({}, {"taskCompletions.t1": value})
        value["complete"] = False

        assert document["taskCompletions"]["t1"]["complete"] is True


class TestValidateUserId:

    def test_strips(self):
        assert validate_user_id("  abc  ") == "abc"

    @pytest.mark.parametrize("user_id", ["", "   ", None, 42, "../etc", "a/b", "a\\b", ".hidden"])
    def test_rejects(self, user_id):
        with pytest.raises(InvalidUpdateError):
            validate_user_id(user_id)


class TestMemoryProgressStore:
    """Test the in-memory store."""

    def test_protocol(self, memory_store):
        assert isinstance(memory_store, ProgressStore)

    def test_missing_user(self, memory_store):
        assert memory_store.load("nobody") is None
        assert not memory_store.exists("nobody")

    def test_update_creates_record(self, memory_store):
        memory_store.apply_update("u1", {"level": 5})

        assert memory_store.load("u1") == {"level": 5}
        assert memory_store.exists("u1")
        assert memory_store.list_users() == ["u1"]

    def test_load_returns_copy(self, memory_store):
        memory_store.apply_update("u1", {"taskCompletions.t1.complete": True})

        loaded = memory_store.load("u1")
        loaded["taskCompletions"]["t1"]["complete"] = False

        assert memory_store.load("u1")["taskCompletions"]["t1"]["complete"] is True

    def test_rejected_update_is_atomic(self, memory_store):
        memory_store.apply_update("u1", {"level": 5})

        with pytest.raises(InvalidUpdateError):
            memory_store.apply_update("u1", {"level": 6, "taskCompletions.t1.invalid": True})

        assert memory_store.load("u1") == {"level": 5}

    def test_delete_and_clear(self, memory_store):
        memory_store.apply_update("u1", {"level": 5})
        memory_store.apply_update("u2", {"level": 6})

        assert memory_store.delete("u1") is True
        assert memory_store.delete("u1") is False
        memory_store.clear()
        assert memory_store.list_users() == []

    def test_seeded_records_are_copied(self, legacy_record):
        store = MemoryProgressStore({"u1": legacy_record})
        store.apply_update("u1", {"level": 1})

        assert legacy_record["level"] == 42


class TestJsonProgressStore:
    """Test the file-based store."""

    def test_round_trip(self, tmp_path):
        store = JsonProgressStore(tmp_path / "progress")
        store.apply_update("u1", {"pvp.level": 12, "currentGameMode": "pvp"})

        assert store.load("u1") == {"pvp": {"level": 12}, "currentGameMode": "pvp"}
        assert (tmp_path / "progress" / "u1.json").exists()

    def test_missing_user(self, tmp_path):
        assert JsonProgressStore(tmp_path).load("nobody") is None

    def test_backup_on_overwrite(self, tmp_path):
        store = JsonProgressStore(tmp_path)
        store.apply_update("u1", {"level": 1})
        store.apply_update("u1", {"level": 2})

        assert (tmp_path / "u1.json.bak").exists()
        assert '"level": 1' in (tmp_path / "u1.json.bak").read_text()
        assert store.load("u1") == {"level": 2}

    def test_corrupted_record(self, tmp_path, caplog):
        (tmp_path / "u1.json").write_text("{not json", encoding="utf-8")

        assert JsonProgressStore(tmp_path).load("u1") is None
        assert "Corrupted" in caplog.text

    def test_rejected_update_leaves_file(self, tmp_path):
        store = JsonProgressStore(tmp_path)
        store.apply_update("u1", {"level": 3})

        with pytest.raises(InvalidUpdateError):
            store.apply_update("u1", {"taskCompletions.t1.invalid": True})

        assert store.load("u1") == {"level": 3}

    def test_failed_write_keeps_record(self, tmp_path):
        """A write that cannot be renamed into place leaves the old record."""
        store = JsonProgressStore(tmp_path)
        store.apply_update("u1", {"level": 3})

        with patch.object(Path, "replace", side_effect=OSError("Simulated failure")):
            with pytest.raises(OSError):
                store.apply_update("u1", {"level": 4})

        assert store.load("u1") == {"level": 3}
        assert list(tmp_path.glob(".*_*.tmp")) == []

    def test_list_delete_exists(self, tmp_path):
        store = JsonProgressStore(tmp_path)
        store.apply_update("u1", {"level": 1})
        store.apply_update("u2", {"level": 2})

        assert set(store.list_users()) == {"u1", "u2"}
        assert store.exists("u2")
        assert store.delete("u2") is True
        assert store.delete("u2") is False
        assert store.list_users() == ["u1"]

    def test_rejects_path_traversal(self, tmp_path):
        with pytest.raises(InvalidUpdateError):
            JsonProgressStore(tmp_path).load("../outside")
