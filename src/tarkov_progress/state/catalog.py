"""Static catalog loading from JSON files.

Accepts either the bare catalog (``{"tasks": [...]}``) or a GraphQL
response wrapping it (``{"data": {"tasks": [...]}}``).
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..errors import CatalogUnavailableError
from .schema import HideoutData, TaskData

logger = logging.getLogger(__name__)


def _read_catalog(path: Path | str, which: str) -> dict:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read {which} catalog from {path}: {e}")
        raise CatalogUnavailableError(which) from e

    if isinstance(data, dict) and isinstance(data.get("data"), dict):
        data = data["data"]
    if not isinstance(data, dict):
        raise CatalogUnavailableError(which)
    return data


def _validate_catalog(model, data: dict, which: str):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Malformed {which} catalog: {e.error_count()} validation error(s)")
        raise CatalogUnavailableError(which) from e


def load_task_data(path: Path | str) -> TaskData:
    task_data = _validate_catalog(TaskData, _read_catalog(path, "tasks"), "tasks")
    logger.info(f"Loaded {len(task_data.tasks)} tasks from {path}")
    return task_data


def load_hideout_data(path: Path | str) -> HideoutData:
    hideout_data = _validate_catalog(HideoutData, _read_catalog(path, "hideout"), "hideout")
    logger.info(f"Loaded {len(hideout_data.hideout_stations)} hideout stations from {path}")
    return hideout_data
