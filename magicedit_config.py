"""Settings for edit sessions, read from ``config.json`` under the state dir.

The state dir is ``.magicedit/`` next to this file unless ``MAGICEDIT_HOME``
points elsewhere. ``load_config`` always hands back every known section:
the file is seeded on first use and sections the user left out are taken
from ``_DEFAULT_CONFIG``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

_REPO_ROOT = Path(__file__).resolve().parent
STATE_DIR = Path(os.environ.get("MAGICEDIT_HOME", _REPO_ROOT / ".magicedit"))
CONFIG_PATH = STATE_DIR / "config.json"

_DEFAULT_CONFIG: Dict[str, Any] = {
    "feather": {
        "radius": 5,
    },
    "boundary": {
        "tolerance": 5,
        "outside_threshold": 5,
    },
    "masks": {
        "strict_empty": False,
    },
    "logging": {
        "level": "INFO",
    },
}


def _defaults() -> Dict[str, Any]:
    return json.loads(json.dumps(_DEFAULT_CONFIG))


def _ensure_dirs() -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)


def _write_default() -> None:
    _ensure_dirs()
    with CONFIG_PATH.open("w", encoding="utf-8") as handle:
        json.dump(_DEFAULT_CONFIG, handle, indent=2, sort_keys=True)
        handle.write("\n")


def load_config() -> Dict[str, Any]:
    """Return the runtime configuration, creating defaults if necessary."""

    if not CONFIG_PATH.exists():
        _write_default()
        return _defaults()

    with CONFIG_PATH.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError:
            # unreadable json: reseed
            _write_default()
            return _defaults()

    if not isinstance(data, dict):
        _write_default()
        return _defaults()

    # user sections win key by key; one level deep only
    merged = _defaults()
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def save_config(config: Dict[str, Any]) -> None:
    """Persist ``config`` back to ``.magicedit/config.json``."""

    _ensure_dirs()
    with CONFIG_PATH.open("w", encoding="utf-8") as handle:
        json.dump(config, handle, indent=2, sort_keys=True)
        handle.write("\n")


__all__ = ["CONFIG_PATH", "STATE_DIR", "load_config", "save_config"]
