from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from . import config
from .config_validation import validate_runtime_config
from .logging_utils import _deka_event
from .utils import ensure_dirs, log_line


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def run_health_checks(entrypoint: str = "cli", *, worker: Optional[Any] = None) -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(entrypoint or "cli")  # type: ignore[arg-type]
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    try:
        ensure_dirs()
        writable = os.access(config.ARTIFACT_DIR, os.W_OK)
        checks["filesystem"] = {"ok": writable, "artifact_dir": str(config.ARTIFACT_DIR)}
    except OSError as exc:
        checks["filesystem"] = {"ok": False, "error": str(exc)}

    if worker is not None:
        status = worker.status()
        checks["worker"] = {"ok": bool(status.get("alive")) and not status.get("session_error"), **status}

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _deka_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


if __name__ == "__main__":  # pragma: no cover
    result = run_health_checks(entrypoint="cli")
    for name, info in result.checks.items():
        status = "OK" if info.get("ok") else "FAIL"
        log_line(f"[HEALTH] {name}: {status} {info}")
    raise SystemExit(0 if result.ok else 1)
