"""
Progress record storage abstraction.

Separates persistence from the progress engine for testability. Records
are plain JSON-shaped dicts in the game API's field names. Writes are
dotted-path updates, each applied as a whole: one call either lands every
field or none. The JSON store writes a temp file and renames it over the
record. Callers that issue several calls (a task write followed by its
knock-on unlocks) get no atomicity across them.

``invalid`` is never persisted: it is recomputed on every read.
"""

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from ..errors import InvalidUpdateError

logger = logging.getLogger(__name__)


class _DeleteField:
    """Sentinel value: remove the field at this path."""

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


def apply_dotted_update(document: dict, updates: Mapping[str, Any]) -> dict:
    """
    Apply ``{"a.b.c": value}`` updates to ``document`` in place.

    Missing intermediate maps are created; non-map intermediates are
    replaced. ``DELETE_FIELD`` removes the leaf if present.
    """
    for path, value in updates.items():
        segments = path.split(".")
        if any(not segment for segment in segments):
            raise InvalidUpdateError(f"Malformed update path: {path!r}")
        if "invalid" in segments:
            raise InvalidUpdateError(f"Refusing to persist derived field: {path!r}")

        node = document
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                if value is DELETE_FIELD:
                    break
                child = {}
                node[segment] = child
            node = child
        else:
            leaf = segments[-1]
            if value is DELETE_FIELD:
                node.pop(leaf, None)
            else:
                node[leaf] = copy.deepcopy(value)
    return document


def validate_user_id(user_id: Any) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidUpdateError("Valid user ID is required")
    user_id = user_id.strip()
    if "/" in user_id or "\\" in user_id or user_id.startswith("."):
        raise InvalidUpdateError(f"Invalid user ID: {user_id!r}")
    return user_id


def _atomic_write(path: Path, content: str) -> None:
    """Write to a temp file beside ``path`` and rename it into place."""
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        Path(temp_path).replace(path)
    except OSError:
        Path(temp_path).unlink(missing_ok=True)
        raise


@runtime_checkable
class ProgressStore(Protocol):
    """
    Abstract storage interface for progress records.

    Implementations:
    - JsonProgressStore: File-based persistence (production)
    - MemoryProgressStore: In-memory storage (testing)
    """

    def load(self, user_id: str) -> dict | None:
        """Load a record. Returns None if the user has never saved."""
        ...

    def apply_update(self, user_id: str, updates: Mapping[str, Any]) -> None:
        """Apply dotted-path updates atomically, creating the record if needed."""
        ...

    def delete(self, user_id: str) -> bool:
        """Delete a record. Returns True if deleted."""
        ...

    def exists(self, user_id: str) -> bool:
        """Check if a record exists."""
        ...

    def list_users(self) -> list[str]:
        """List user ids with a stored record."""
        ...


class JsonProgressStore:
    """
    File-based progress storage using JSON.

    One file per user. The previous version is kept as ``.json.bak``.
    """

    def __init__(self, data_dir: Path | str = "progress"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, user_id: str) -> Path:
        return self.data_dir / f"{validate_user_id(user_id)}.json"

    def _read(self, path: Path) -> dict | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted progress record {path.name}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def load(self, user_id: str) -> dict | None:
        """Load a user's record from disk."""
        return self._read(self._path(user_id))

    def apply_update(self, user_id: str, updates: Mapping[str, Any]) -> None:
        """Read-modify-write under the store lock, with backup."""
        path = self._path(user_id)
        with self._lock:
            document = self._read(path) or {}
            apply_dotted_update(document, updates)

            if path.exists():
                backup = path.with_suffix(".json.bak")
                backup.write_text(path.read_text(encoding="utf-8"), encoding="utf-8")

            _atomic_write(path, json.dumps(document, indent=2))

    def delete(self, user_id: str) -> bool:
        path = self._path(user_id)
        with self._lock:
            if path.exists():
                path.unlink()
                return True
        return False

    def exists(self, user_id: str) -> bool:
        return self._path(user_id).exists()

    def list_users(self) -> list[str]:
        """List users sorted by most recently written first."""
        return [
            f.stem
            for f in sorted(
                self.data_dir.glob("*.json"),
                key=lambda x: x.stat().st_mtime,
                reverse=True,
            )
            if not f.name.startswith(".")
        ]


class MemoryProgressStore:
    """
    In-memory progress storage for testing.

    No file I/O - all data lives in memory. Loads return deep copies.
    """

    def __init__(self, records: Mapping[str, dict] | None = None):
        self.records: dict[str, dict] = copy.deepcopy(dict(records or {}))
        self._lock = threading.Lock()

    def load(self, user_id: str) -> dict | None:
        record = self.records.get(user_id)
        return copy.deepcopy(record) if record is not None else None

    def apply_update(self, user_id: str, updates: Mapping[str, Any]) -> None:
        user_id = validate_user_id(user_id)
        with self._lock:
            # Work on a copy so a rejected path leaves the record untouched
            document = copy.deepcopy(self.records.get(user_id, {}))
            apply_dotted_update(document, updates)
            self.records[user_id] = document

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self.records.pop(user_id, None) is not None

    def exists(self, user_id: str) -> bool:
        return user_id in self.records

    def list_users(self) -> list[str]:
        return list(self.records)

    def clear(self) -> None:
        """Clear all records (test utility)."""
        self.records.clear()
