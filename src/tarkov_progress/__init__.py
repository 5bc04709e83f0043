"""Progress consistency engine for task and hideout tracking."""

from .errors import CatalogUnavailableError, InvalidUpdateError, ProgressEngineError
from .state import (
    FormattedProgress,
    HideoutData,
    ProgressEntry,
    ProgressManager,
    TaskData,
)
from .systems import format_progress, invalidate_task_recursive, invalidate_tasks

__version__ = "0.1.0"

__all__ = [
    "CatalogUnavailableError",
    "InvalidUpdateError",
    "ProgressEngineError",
    "FormattedProgress",
    "HideoutData",
    "ProgressEntry",
    "ProgressManager",
    "TaskData",
    "format_progress",
    "invalidate_task_recursive",
    "invalidate_tasks",
]
