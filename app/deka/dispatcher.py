"""Query dispatch: mirror first, court automation as the fallback.

:class:`QueryDispatcher` answers one query at a time. :class:`QueryWorker`
is the single thread that owns the browser session: it starts the session,
takes queries off an ordered inbox one by one, dispatches them and closes
the session when it stops. Every submitted query is answered exactly once,
including queries still queued at shutdown or submitted after the session
failed to start.
"""
from __future__ import annotations

import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Optional

from . import config
from .automation import run_automation
from .errors import DekaError, SessionUnavailableError, describe_error
from .logging_utils import _deka_event
from .mirror import fetch_mirror
from .models import (
    CaseByNumber,
    CaseQuery,
    CaseRecord,
    QueryPayload,
    QueryResponse,
    ResponseErr,
    ResponseOkay,
)
from .session import BrowserSession
from .utils import log_line

ERROR_PREFIX = "Unable to find Deka:\n"

MirrorFn = Callable[[str], list[CaseRecord]]
AutomationFn = Callable[[Any, CaseQuery], list[CaseRecord]]
ResponseCallback = Callable[[QueryResponse], None]


def mirror_query_text(query: CaseQuery) -> str:
    """Free-text query sent to the mirror search for ``query``."""

    if isinstance(query, CaseByNumber):
        return query.case_ref
    return "{} {} {} {}".format(
        " ".join(query.keywords),
        query.law_name or "",
        query.law_section or "",
        query.year_from if query.year_from is not None else "",
    )


def matching_records(query: CaseQuery, records: list[CaseRecord]) -> list[CaseRecord]:
    """Keep only records that answer ``query``.

    Mirror search is full text, so a case-number lookup also returns posts
    about other cases; only titles ending in ``serial/year`` count.
    """

    if isinstance(query, CaseByNumber):
        return [record for record in records if record.case_number.endswith(query.case_ref)]
    return records


def error_response(payload: QueryPayload, exc: BaseException) -> ResponseErr:
    return ResponseErr(message=payload.message, error=f"{ERROR_PREFIX}{describe_error(exc)}")


class QueryDispatcher:
    """Answer queries from the mirror, falling back to the shared session."""

    def __init__(
        self,
        session: Any,
        *,
        mirror: MirrorFn = fetch_mirror,
        automation: AutomationFn = run_automation,
    ) -> None:
        self._session = session
        self._mirror = mirror
        self._automation = automation
        # Non-reentrant: one automation run holds the session at a time.
        self._session_gate = threading.Lock()

    def retrieve(self, query: CaseQuery) -> list[CaseRecord]:
        text = mirror_query_text(query)
        try:
            records = self._mirror(text)
        except DekaError as exc:
            _deka_event("dispatch", step="mirror_failed", query=query, error=exc.describe())
            records = []
        except Exception as exc:  # noqa: BLE001
            _deka_event("dispatch", step="mirror_failed", query=query, error=describe_error(exc))
            records = []

        matched = matching_records(query, records)
        if matched:
            _deka_event("dispatch", step="mirror_hit", query=query, records=len(matched))
            return matched
        if records:
            _deka_event("dispatch", step="mirror_mismatch", query=query, records=len(records))

        _deka_event("dispatch", step="fallback_automation", query=query)
        with self._session_gate:
            return self._automation(self._session, query)

    def dispatch(self, payload: QueryPayload) -> QueryResponse:
        """Return exactly one response for ``payload``; never raises."""

        try:
            records = self.retrieve(payload.info)
        except Exception as exc:  # noqa: BLE001
            _deka_event("error", phase="dispatch", step="query_failed", error=describe_error(exc))
            return error_response(payload, exc)
        return ResponseOkay(message=payload.message, result=records)


@dataclass
class _Job:
    payload: QueryPayload
    future: Future


class QueryWorker(threading.Thread):
    """Single consumer of the inbound queue and sole owner of the session."""

    def __init__(
        self,
        session_factory: Callable[[], Any] = BrowserSession,
        *,
        on_response: Optional[ResponseCallback] = None,
        dispatcher_factory: Callable[[Any], QueryDispatcher] = QueryDispatcher,
        max_queue: Optional[int] = None,
    ) -> None:
        super().__init__(name="deka-worker", daemon=True)
        self._session_factory = session_factory
        self._dispatcher_factory = dispatcher_factory
        self._on_response = on_response
        self._inbox: "queue.Queue[_Job]" = queue.Queue(
            maxsize=max(1, max_queue or config.QUEUE_MAX_SIZE)
        )
        self._lock = threading.Lock()
        self._accepting = True
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self.session_error: Optional[DekaError] = None
        self.processed = 0

    def submit(self, payload: QueryPayload) -> "Future[QueryResponse]":
        """Queue ``payload``; the future resolves with its response."""

        job = _Job(payload, Future())
        with self._lock:
            if self._accepting:
                try:
                    self._inbox.put_nowait(job)
                    return job.future
                except queue.Full:
                    rejection: DekaError = SessionUnavailableError("Query queue is full")
            else:
                rejection = self.session_error or SessionUnavailableError("Query worker is not running")
        self._deliver(job, error_response(payload, rejection))
        return job.future

    def stop(self) -> None:
        """Ask the loop to exit after the query currently in flight."""

        self._stop_event.set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    @property
    def queued(self) -> int:
        return self._inbox.qsize()

    def status(self) -> dict[str, Any]:
        return {
            "alive": self.is_alive(),
            "ready": self._ready.is_set() and self.session_error is None,
            "session_error": self.session_error.describe() if self.session_error else None,
            "queued": self.queued,
            "processed": self.processed,
        }

    def run(self) -> None:
        try:
            session = self._session_factory()
            session.start()
        except Exception as exc:  # noqa: BLE001
            self.session_error = (
                exc
                if isinstance(exc, SessionUnavailableError)
                else SessionUnavailableError(f"Unable to start browser session: {exc}")
            )
            _deka_event("error", phase="worker", step="session_unavailable", error=self.session_error.describe())
            log_line("[WORKER] Browser session unavailable; worker exiting.")
            self._ready.set()
            self._close_inbox(self.session_error)
            return

        self._ready.set()
        _deka_event("worker", step="started")
        dispatcher = self._dispatcher_factory(session)
        try:
            while not self._stop_event.is_set():
                try:
                    job = self._inbox.get(timeout=config.QUEUE_POLL_SECONDS)
                except queue.Empty:
                    continue
                self._deliver(job, dispatcher.dispatch(job.payload))
                self.processed += 1
        finally:
            self._close_inbox(SessionUnavailableError("Query worker is shutting down"))
            session.close()
            _deka_event("worker", step="stopped", processed=self.processed)

    def _close_inbox(self, reason: DekaError) -> None:
        with self._lock:
            self._accepting = False
        while True:
            try:
                job = self._inbox.get_nowait()
            except queue.Empty:
                return
            self._deliver(job, error_response(job.payload, reason))

    def _deliver(self, job: _Job, response: QueryResponse) -> None:
        job.future.set_result(response)
        if self._on_response is None:
            return
        try:
            self._on_response(response)
        except Exception as exc:  # noqa: BLE001
            log_line(f"[WORKER] Response callback failed: {exc}")


__all__ = [
    "ERROR_PREFIX",
    "QueryDispatcher",
    "QueryWorker",
    "error_response",
    "matching_records",
    "mirror_query_text",
]
