"""Settings loading.

Settings are plain JSON objects. All access is defensive: a missing,
unreadable or malformed file falls back to an empty mapping.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir, user_state_dir

APP_NAME = "navhistory"
SETTINGS_FILENAME = "settings.json"
STATE_FILENAME = "state.json"
FOLDER_SETTINGS_PATH = Path(".navhistory") / SETTINGS_FILENAME

SETTINGS_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / SETTINGS_FILENAME
DEFAULT_STATE_PATH = Path(user_state_dir(APP_NAME, appauthor=False)) / STATE_FILENAME

FILES_EXCLUDE_KEY = "files.exclude"
SEARCH_EXCLUDE_KEY = "search.exclude"
STORAGE_PATH_KEY = "history.storagePath"


def _load_json_object(path: Path) -> dict[str, object]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Path | None = None) -> dict[str, object]:
    """Load user settings, returning ``{}`` when unavailable."""
    return _load_json_object(path if path is not None else SETTINGS_PATH)


def load_folder_settings(folder: Path) -> dict[str, object]:
    """Load ``<folder>/.navhistory/settings.json`` overrides."""
    return _load_json_object(folder / FOLDER_SETTINGS_PATH)


def exclude_expression(settings: dict[str, object], key: str) -> dict[str, bool]:
    """Return the glob map stored under ``key``; non-boolean values are dropped."""
    value = settings.get(key)
    if not isinstance(value, dict):
        return {}
    return {
        pattern: enabled
        for pattern, enabled in value.items()
        if isinstance(pattern, str) and pattern and isinstance(enabled, bool)
    }


def storage_path(settings: dict[str, object]) -> Path:
    """Return the configured state file, defaulting to the platform state dir."""
    value = settings.get(STORAGE_PATH_KEY)
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return DEFAULT_STATE_PATH
