"""
CLI settings saved between runs.

Kept as ``.progress_config.json`` next to the progress records, so each
data directory carries its own default mode and catalog locations.
"""

import json
from pathlib import Path
from typing import TypedDict


class Config(TypedDict, total=False):
    """Saved CLI defaults."""
    game_mode: str  # pvp or pve
    log_level: str  # DEBUG, INFO, WARNING, ...
    tasks_catalog: str | None  # Path to tasks JSON
    hideout_catalog: str | None  # Path to hideout JSON


DEFAULT_CONFIG: Config = {
    "game_mode": "pvp",
    "log_level": "WARNING",
    "tasks_catalog": None,
    "hideout_catalog": None,
}

DEFAULT_DATA_DIR = "progress"
CONFIG_FILENAME = ".progress_config.json"


def get_config_path(data_dir: Path | str = DEFAULT_DATA_DIR) -> Path:
    return Path(data_dir) / CONFIG_FILENAME


def load_config(data_dir: Path | str = DEFAULT_DATA_DIR) -> Config:
    """Saved settings layered over the defaults. Unreadable files give defaults."""
    config = DEFAULT_CONFIG.copy()
    path = get_config_path(data_dir)
    if not path.exists():
        return config

    try:
        saved = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return config

    if isinstance(saved, dict):
        config.update({key: value for key, value in saved.items() if key in DEFAULT_CONFIG})
    return config


def save_config(config: Config, data_dir: Path | str = DEFAULT_DATA_DIR) -> bool:
    """Write settings, creating the data directory. Returns False on I/O failure."""
    path = get_config_path(data_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    except OSError:
        return False
    return True

