from __future__ import annotations

import atexit
import os
import threading
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Optional

from flask import Flask, Response, jsonify, request

from app.deka import config
from app.deka.config_validation import validate_runtime_config
from app.deka.dispatcher import ERROR_PREFIX, QueryWorker
from app.deka.error_codes import ErrorCode
from app.deka.errors import InvalidQueryError
from app.deka.healthcheck import run_health_checks
from app.deka.logging_utils import _deka_event
from app.deka.models import parse_payload
from app.deka.utils import ensure_dirs, log_line

app = Flask(__name__)
app.json.ensure_ascii = False

# Initialise storage paths on import so WSGI entrypoints also have the
# expected environment ready.
ensure_dirs()
validate_runtime_config("ui")

_WORKER: Optional[QueryWorker] = None
_WORKER_LOCK = threading.Lock()


def get_worker() -> QueryWorker:
    """Return the process-wide query worker, starting it on first use.

    A worker whose browser session failed is kept as is; it answers every
    query with an error instead of reconnecting.
    """

    global _WORKER
    with _WORKER_LOCK:
        if _WORKER is None:
            _WORKER = QueryWorker()
            _WORKER.start()
            log_line("[RELAY] Query worker started")
        return _WORKER


def start_worker(ready_timeout: Optional[float] = None) -> QueryWorker:
    """Start the worker at process startup.

    Waits up to ``ready_timeout`` for the browser session so a session that
    cannot start is reported in the log before any query arrives.
    """

    worker = get_worker()
    if not worker.wait_ready(ready_timeout):
        log_line("[RELAY] Browser session still starting; queries will queue until it is ready")
    elif worker.session_error is not None:
        log_line(f"[RELAY] Browser session unavailable: {worker.session_error.describe()}")
    return worker


def shutdown_worker(timeout: Optional[float] = None) -> None:
    """Stop the worker between queries and wait for it to close the session."""

    global _WORKER
    with _WORKER_LOCK:
        worker, _WORKER = _WORKER, None
    if worker is None:
        return
    worker.stop()
    worker.join(timeout)
    log_line("[RELAY] Query worker stopped")


atexit.register(shutdown_worker)


def _relay_error(message: Any, error: str, status: int) -> tuple[Response, int]:
    return jsonify({"from": config.RESPONSE_FROM, "message": message, "error": error}), status


@app.post("/api/query")
def api_query() -> tuple[Response, int]:
    """Answer one ``{message, info}`` relay message with one response."""

    data = request.get_json(silent=True)
    envelope = data.get("message") if isinstance(data, dict) else None

    try:
        payload = parse_payload(data)
    except InvalidQueryError as exc:
        _deka_event("relay", step="invalid_payload", error=str(exc))
        return _relay_error(envelope, f"{ERROR_PREFIX}{exc.describe()}", 400)

    future = get_worker().submit(payload)
    try:
        response = future.result(timeout=config.QUERY_RESPONSE_TIMEOUT_SECONDS)
    except FutureTimeout:
        _deka_event("relay", step="response_timeout", timeout=config.QUERY_RESPONSE_TIMEOUT_SECONDS)
        return _relay_error(
            payload.message,
            f"{ERROR_PREFIX}{ErrorCode.AUTOMATION_TIMEOUT}: no response within "
            f"{config.QUERY_RESPONSE_TIMEOUT_SECONDS}s",
            504,
        )

    return jsonify(response.to_dict()), 200 if response.ok else 502


@app.get("/api/health")
def api_health() -> tuple[Response, int]:
    """Return a JSON health summary for configuration, filesystem and worker."""

    result = run_health_checks(entrypoint="ui", worker=_WORKER)
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
