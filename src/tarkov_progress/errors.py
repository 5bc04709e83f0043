"""Exceptions raised to the orchestration layer.

Business outcomes (faction gates, completed alternatives, unmet
requirements) are never errors; they surface as ``invalid=True`` entries.
"""


class ProgressEngineError(Exception):
    """Base class for errors raised by the progress engine."""


class CatalogUnavailableError(ProgressEngineError):
    """Static game data is missing and cannot be defaulted."""

    def __init__(self, which: str):
        self.which = which
        super().__init__(f"Failed to load essential game data: {which}")


class InvalidUpdateError(ProgressEngineError, ValueError):
    """A requested progress write is malformed."""
