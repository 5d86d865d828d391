from __future__ import annotations

import logging
import re
import sys
import time
from datetime import datetime
from pathlib import Path

from . import config

LOGGER = logging.getLogger("deka")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


def _configure_logger(log_path: Path) -> None:
    """Configure the shared application logger to write to ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    ensure_dirs()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)

    LOGGER.setLevel(logging.INFO)
    LOGGER.addHandler(stream_handler)
    LOGGER.addHandler(file_handler)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    """Initialise the logger lazily using the default log file."""

    if _LOGGER_INITIALISED:
        return

    _configure_logger(config.LOG_FILE)


def setup_run_logger() -> Path:
    """Rotate to a fresh timestamped log file for the current worker process."""

    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
    log_path = config.LOG_DIR / f"deka_{timestamp}.log"
    _configure_logger(log_path)
    LOGGER.info("Logging to %s", log_path)
    return log_path


def get_current_log_path() -> Path:
    """Return the path to the log file currently receiving log lines."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def ensure_dirs() -> None:
    """Ensure that the service's expected directory structure exists."""

    config.DATA_DIR.mkdir(parents=True, exist_ok=True)
    config.LOG_DIR.mkdir(parents=True, exist_ok=True)
    config.ARTIFACT_DIR.mkdir(parents=True, exist_ok=True)


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def sanitize_filename_component(component: str | None) -> str:
    """Sanitise a filename component by removing unsafe characters."""

    if not component:
        return ""

    cleaned = "".join(ch if ord(ch) >= 32 else " " for ch in component)
    cleaned = re.sub(r"[\\/:*?\"<>|]+", "-", cleaned)
    cleaned = re.sub(r"\s+", "_", cleaned)
    cleaned = cleaned.strip(" ._")

    return cleaned


def timestamped_artifact_path(name: str, *, now: float | None = None) -> Path:
    """Return ``ARTIFACT_DIR/<name>-<unix seconds>.png`` for a debug capture."""

    stamp = int(now if now is not None else time.time())
    safe_name = sanitize_filename_component(name) or "capture"
    return config.ARTIFACT_DIR / f"{safe_name}-{stamp}.png"


__all__ = [
    "ensure_dirs",
    "get_current_log_path",
    "log_line",
    "sanitize_filename_component",
    "setup_run_logger",
    "timestamped_artifact_path",
]
