"""Lifecycle of the single shared browser session.

Playwright's sync objects are bound to the thread that started them, so a
session must be started, used and closed by the same thread (the query
worker). Every query gets its own tab via :meth:`BrowserSession.query_page`
and the tab is closed whatever the outcome.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from playwright.sync_api import Error as PWError, Page, sync_playwright

from . import config
from .errors import SessionUnavailableError
from .logging_utils import _deka_event
from .utils import log_line


class BrowserSession:
    """One persistent browser context reused across queries."""

    def __init__(
        self,
        *,
        headless: Optional[bool] = None,
        ws_endpoint: Optional[str] = None,
        launcher: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._headless = config.BROWSER_HEADLESS if headless is None else headless
        self._ws_endpoint = config.BROWSER_WS_ENDPOINT if ws_endpoint is None else ws_endpoint
        self._launcher = launcher
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._context is not None and not self._closed

    def start(self) -> "BrowserSession":
        """Launch (or connect to) the browser; raise if that is impossible."""

        if self._closed:
            raise SessionUnavailableError("Browser session was already closed")
        if self._context is not None:
            return self

        try:
            self._playwright = self._launcher().start()
            chromium = self._playwright.chromium
            if self._ws_endpoint:
                log_line(f"[SESSION] Connecting to remote browser at {self._ws_endpoint}")
                self._browser = chromium.connect(self._ws_endpoint)
            else:
                log_line(f"[SESSION] Launching Chromium (headless={self._headless})")
                self._browser = chromium.launch(headless=self._headless)
            self._context = self._browser.new_context(
                user_agent=config.USER_AGENT,
                locale="th-TH",
                viewport=dict(config.WINDOW_SIZE),
            )
            self._context.set_default_timeout(config.SELECTOR_TIMEOUT_SECONDS * 1000)
            self._context.set_default_navigation_timeout(config.NAV_TIMEOUT_SECONDS * 1000)
        except Exception as exc:  # noqa: BLE001
            _deka_event("error", phase="session", step="start_failed", error=str(exc))
            self._teardown()
            raise SessionUnavailableError(f"Unable to start browser session: {exc}") from exc

        _deka_event("session", step="started", remote=bool(self._ws_endpoint))
        return self

    def new_page(self) -> Page:
        if not self.is_open:
            raise SessionUnavailableError("Browser session is not running")
        return self._context.new_page()

    @contextmanager
    def query_page(self) -> Iterator[Page]:
        """Open a tab for one query and always close it afterwards."""

        page = self.new_page()
        try:
            yield page
        finally:
            try:
                page.close()
            except PWError as exc:
                log_line(f"[SESSION] Failed to close query tab: {exc}")

    def close(self) -> None:
        """Release the browser. Safe to call more than once."""

        if self._closed:
            return
        self._closed = True
        self._teardown()
        _deka_event("session", step="closed")

    def _teardown(self) -> None:
        for label, closer in (
            ("context", getattr(self._context, "close", None)),
            ("browser", getattr(self._browser, "close", None)),
            ("playwright", getattr(self._playwright, "stop", None)),
        ):
            if closer is None:
                continue
            try:
                closer()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[SESSION] Failed to close {label}: {exc}")
        self._context = None
        self._browser = None
        self._playwright = None

    def __enter__(self) -> "BrowserSession":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["BrowserSession"]
