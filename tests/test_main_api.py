from __future__ import annotations

import importlib
import sys
from concurrent.futures import Future
from typing import Any

import pytest

from app.deka import config
from app.deka.models import CaseRecord, ResponseErr, ResponseOkay


def _reload_main_module():
    if "app.main" in sys.modules:
        del sys.modules["app.main"]
    return importlib.import_module("app.main")


class StubWorker:
    def __init__(self, response: Any = None) -> None:
        self.response = response
        self.submitted: list[Any] = []

    def submit(self, payload: Any) -> Future:
        self.submitted.append(payload)
        future: Future = Future()
        if self.response is not None:
            future.set_result(self.response(payload))
        return future

    def status(self) -> dict:
        return {"alive": True, "ready": True, "session_error": None, "queued": 0, "processed": len(self.submitted)}


NUMBER_INFO = {"mode": "number", "dekaSerial": "264", "dekaYear": 2567}


@pytest.fixture
def main_module():
    return _reload_main_module()


def test_query_success_returns_records(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    worker = StubWorker(lambda p: ResponseOkay(p.message, [CaseRecord("264/2567", short_note="สรุป\n")]))
    monkeypatch.setattr(main_module, "get_worker", lambda: worker)
    client = main_module.app.test_client()

    resp = client.post("/api/query", json={"message": {"chat": 7}, "info": NUMBER_INFO})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["from"] == "deka"
    assert body["message"] == {"chat": 7}
    assert body["result"][0]["deka_no"] == "264/2567"
    assert body["result"][0]["metadata"] == {"law": "", "source": ""}
    assert "สรุป" in resp.get_data(as_text=True)
    assert worker.submitted[0].info.case_ref == "264/2567"


def test_query_error_maps_to_bad_gateway(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    worker = StubWorker(lambda p: ResponseErr(p.message, "Unable to find Deka:\nautomation_timeout: slow"))
    monkeypatch.setattr(main_module, "get_worker", lambda: worker)

    resp = main_module.app.test_client().post("/api/query", json={"message": 1, "info": NUMBER_INFO})

    assert resp.status_code == 502
    assert resp.get_json()["error"].startswith("Unable to find Deka:\n")


def test_invalid_payload_is_rejected_without_worker(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_worker():
        raise AssertionError("worker must not be used for invalid payloads")

    monkeypatch.setattr(main_module, "get_worker", _no_worker)
    client = main_module.app.test_client()

    resp = client.post("/api/query", json={"message": "m", "info": {"mode": "search", "searchWords": []}})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "m"
    assert "invalid_query" in body["error"]

    assert client.post("/api/query", data="not json").status_code == 400


def test_unanswered_query_times_out(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main_module, "get_worker", lambda: StubWorker())
    monkeypatch.setattr(config, "QUERY_RESPONSE_TIMEOUT_SECONDS", 0.01)

    resp = main_module.app.test_client().post("/api/query", json={"message": 1, "info": NUMBER_INFO})

    assert resp.status_code == 504
    assert "automation_timeout" in resp.get_json()["error"]


def test_health_api_reports_status(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    client = main_module.app.test_client()

    resp = client.get("/api/health")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["ok"] is True
    assert "filesystem" in payload["checks"]
    assert "worker" not in payload["checks"]

    failed = StubWorker()
    failed.status = lambda: {"alive": False, "ready": False, "session_error": "session_unavailable: x"}
    monkeypatch.setattr(main_module, "_WORKER", failed)

    resp_unhealthy = client.get("/api/health")
    assert resp_unhealthy.status_code == 503
    assert resp_unhealthy.get_json()["checks"]["worker"]["ok"] is False


def test_shutdown_worker_stops_running_worker(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    class Running:
        def stop(self) -> None:
            calls.append("stop")

        def join(self, timeout=None) -> None:
            calls.append("join")

    monkeypatch.setattr(main_module, "_WORKER", Running())

    main_module.shutdown_worker()
    main_module.shutdown_worker()

    assert calls == ["stop", "join"]
    assert main_module._WORKER is None


class _StartupWorker:
    instances: list["_StartupWorker"] = []

    def __init__(self, session_error: Any = None, ready: bool = True) -> None:
        self.session_error = session_error
        self.ready = ready
        self.started = False
        self.ready_timeout: Any = "unset"
        _StartupWorker.instances.append(self)

    def start(self) -> None:
        self.started = True

    def wait_ready(self, timeout=None) -> bool:
        self.ready_timeout = timeout
        return self.ready

    def stop(self) -> None:
        pass

    def join(self, timeout=None) -> None:
        pass


def test_start_worker_starts_session_before_first_query(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    _StartupWorker.instances = []
    monkeypatch.setattr(main_module, "QueryWorker", _StartupWorker)
    logged: list[str] = []
    monkeypatch.setattr(main_module, "log_line", logged.append)

    worker = main_module.start_worker(ready_timeout=5)

    assert worker.started is True
    assert worker.ready_timeout == 5
    assert main_module.get_worker() is worker
    assert len(_StartupWorker.instances) == 1
    assert not any("unavailable" in line for line in logged)
    main_module.shutdown_worker()


def test_start_worker_reports_unavailable_session(main_module, monkeypatch: pytest.MonkeyPatch) -> None:
    from app.deka.errors import SessionUnavailableError

    monkeypatch.setattr(
        main_module,
        "QueryWorker",
        lambda: _StartupWorker(session_error=SessionUnavailableError("no chromium")),
    )
    logged: list[str] = []
    monkeypatch.setattr(main_module, "log_line", logged.append)

    main_module.start_worker(ready_timeout=1)

    assert any("session_unavailable: no chromium" in line for line in logged)
    main_module.shutdown_worker()
