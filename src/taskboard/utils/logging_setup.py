# Rev 0.1.0

# taskboard – logging setup (Rev 0.1.0)
from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

try:
    # Optional: pipe Qt messages into Python logging if Qt exists
    from PySide6.QtCore import qInstallMessageHandler, QtMsgType
    def _qt_handler(msg_type, context, message):
        lvl = {
            QtMsgType.QtDebugMsg: logging.DEBUG,
            QtMsgType.QtInfoMsg: logging.INFO,
            QtMsgType.QtWarningMsg: logging.WARNING,
            QtMsgType.QtCriticalMsg: logging.ERROR,
            QtMsgType.QtFatalMsg: logging.CRITICAL,
        }.get(msg_type, logging.INFO)
        logging.getLogger("qt").log(lvl, message)
except ImportError:
    qInstallMessageHandler = None  # PySide6 not available at import time

from .paths import APP_NAME, LOGS_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Loggers live under the app namespace: get_logger('TaskService') -> 'taskboard.TaskService'."""
    if name.startswith(APP_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_NAME}.{name}")


def setup_logging(app_name: str = APP_NAME, log_dir: Path | None = None, *, console: bool = True) -> Path:
    # Level via env (DEBUG/INFO/WARNING/ERROR), default INFO
    level_name = os.environ.get("TASKBOARD_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    log_dir = Path(log_dir) if log_dir is not None else LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / f"{app_name}.log"

    root = logging.getLogger()
    root.setLevel(level)

    # File: rotate at 5MB, keep 7 backups
    fh = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
    fh.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    fh.setLevel(level)
    root.addHandler(fh)

    if console:
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        ch.setLevel(level)
        root.addHandler(ch)

    # Uncaught exceptions → log as ERROR
    def _excepthook(exctype, value, tb):
        logging.getLogger("unhandled").exception("Uncaught exception", exc_info=(exctype, value, tb))
        sys.__excepthook__(exctype, value, tb)
    sys.excepthook = _excepthook

    if qInstallMessageHandler is not None:
        qInstallMessageHandler(_qt_handler)

    get_logger("logging").info("Logging initialized at %s; file: %s", level_name, logfile)
    return logfile
