# src/taskboard/utils/config.py
import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional
from .paths import CONFIG_DIR

SETTINGS_FILE = CONFIG_DIR / "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "board": {
        "reload_interval_ms": 30_000,
        "auto_dispatch": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = Path(path) if path is not None else SETTINGS_FILE
    if path.exists():
        try:
            return _merge(_DEFAULTS, json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError):
            logging.getLogger("taskboard.config").warning("Unreadable settings at %s; using defaults", path)
            return deepcopy(_DEFAULTS)
    return deepcopy(_DEFAULTS)


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = Path(path) if path is not None else SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
