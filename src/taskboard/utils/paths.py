# Rev 0.1.0

"""Paths and XDG helpers (Rev 0.1.0)
- Uses XDG Base Directory locations for data, logs/state and config
- DB path can be overridden with TASKBOARD_DB
- SQL migrations ship inside the package
"""
from __future__ import annotations
import os
from pathlib import Path


APP_NAME = "taskboard"


XDG_DATA_HOME = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
XDG_STATE_HOME = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


DATA_DIR = XDG_DATA_HOME / APP_NAME
STATE_DIR = XDG_STATE_HOME / APP_NAME
LOGS_DIR = STATE_DIR / "logs"
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME


PACKAGE_ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = PACKAGE_ROOT / "migrations"


def db_path() -> Path:
    return Path(os.environ.get("TASKBOARD_DB", DATA_DIR / "taskboard.db")).expanduser()
