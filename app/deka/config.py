"""Configuration constants for the Supreme Court case lookup service."""
from __future__ import annotations

import os
from pathlib import Path

DATA_DIR: Path = Path(os.getenv("DEKA_DATA_DIR", "/app/data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
# Debug screenshots of the court search forms land here.
ARTIFACT_DIR: Path = DATA_DIR / "screenshots"

MIRROR_SEARCH_URL: str = os.getenv("DEKA_MIRROR_SEARCH_URL", "https://www.dekasuksa.com/search")
MIRROR_DISPLAY_NAME: str = "เว็บไซต์ฎีกาศึกษา"

COURT_BASE_URL: str = os.getenv("DEKA_COURT_BASE_URL", "http://deka.supremecourt.or.th/")
COURT_RESULTS_PATH: str = "/search"
COURT_PRINT_PATH: str = "/printing/dekaall"

RESPONSE_FROM: str = "deka"


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _parse_flag(env_var: str, default: str) -> bool:
    return os.getenv(env_var, default).strip().lower() not in {"0", "false", "no", ""}


# HTTP timeout for mirror listing and case pages.
MIRROR_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DEKA_MIRROR_TIMEOUT_SECONDS", 20)
# Navigation timeout for page.goto calls against the court site.
NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DEKA_NAV_TIMEOUT_SECONDS", 30)
# Wait for the results (and print view) URL after submitting a form.
RESULT_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DEKA_RESULT_TIMEOUT_SECONDS", 30)
# Selector waits (result marker, long-note toggle, advanced tab).
SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DEKA_SELECTOR_TIMEOUT_SECONDS", 30)
# Law-name autocomplete dropdown.
AUTOCOMPLETE_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DEKA_AUTOCOMPLETE_TIMEOUT_SECONDS", 10)
# How long the relay surface waits for the worker to answer one query.
QUERY_RESPONSE_TIMEOUT_SECONDS: int = _parse_timeout_seconds(
    "DEKA_QUERY_RESPONSE_TIMEOUT_SECONDS", 180
)

# Concurrency controls
# Max number of mirror case pages fetched in parallel for one query.
MIRROR_MAX_WORKERS: int = int(os.getenv("DEKA_MIRROR_MAX_WORKERS", "8"))
# Inbound queue depth for the worker; submissions beyond it are rejected.
QUEUE_MAX_SIZE: int = int(os.getenv("DEKA_QUEUE_MAX_SIZE", "1000"))
# Poll interval used by the worker loop to observe shutdown between queries.
QUEUE_POLL_SECONDS: float = float(os.getenv("DEKA_QUEUE_POLL_SECONDS", "0.5"))

BROWSER_HEADLESS: bool = _parse_flag("DEKA_BROWSER_HEADLESS", "1")
# When set, connect to an already running browser instead of launching one.
BROWSER_WS_ENDPOINT: str = os.getenv("DEKA_BROWSER_WS_ENDPOINT", "").strip()
WINDOW_SIZE: dict[str, int] = {"width": 1920, "height": 1080}

DEBUG_SCREENSHOTS: bool = _parse_flag("DEKA_DEBUG_SCREENSHOTS", "0")

USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

COMMON_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "th-TH,th;q=0.9,en-US;q=0.8,en;q=0.7",
    "Connection": "keep-alive",
}


__all__ = [
    "ARTIFACT_DIR",
    "COURT_BASE_URL",
    "DATA_DIR",
    "LOG_DIR",
    "MIRROR_SEARCH_URL",
]
