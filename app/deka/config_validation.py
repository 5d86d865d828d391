from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _deka_event
from .utils import log_line

Entrypoint = Literal["ui", "cli", "worker", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _deka_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def _clamp_to_one(field_name: str, *, entrypoint: Entrypoint) -> None:
    value = getattr(config, field_name)
    if value >= 1:
        return
    _deka_event(
        "state",
        phase="config",
        context="runtime_validation",
        kind="config_adjustment",
        field=field_name,
        value=value,
        adjusted=1,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {field_name} < 1; clamping to 1.")
    setattr(config, field_name, 1)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Worker and queue sizes below one are clamped and logged instead.
    """

    for url_field in ("MIRROR_SEARCH_URL", "COURT_BASE_URL"):
        value = str(getattr(config, url_field) or "")
        if not value.startswith(("http://", "https://")):
            _raise_config_error(
                f"{url_field} must be an http(s) URL.",
                entrypoint=entrypoint,
                error="invalid_url",
            )

    _clamp_to_one("MIRROR_MAX_WORKERS", entrypoint=entrypoint)
    _clamp_to_one("QUEUE_MAX_SIZE", entrypoint=entrypoint)

    if config.QUEUE_POLL_SECONDS <= 0:
        _raise_config_error(
            "QUEUE_POLL_SECONDS must be greater than zero.",
            entrypoint=entrypoint,
            error="invalid_poll_interval",
        )

    timeout_fields = [
        ("MIRROR_TIMEOUT_SECONDS", config.MIRROR_TIMEOUT_SECONDS),
        ("NAV_TIMEOUT_SECONDS", config.NAV_TIMEOUT_SECONDS),
        ("RESULT_TIMEOUT_SECONDS", config.RESULT_TIMEOUT_SECONDS),
        ("SELECTOR_TIMEOUT_SECONDS", config.SELECTOR_TIMEOUT_SECONDS),
        ("AUTOCOMPLETE_TIMEOUT_SECONDS", config.AUTOCOMPLETE_TIMEOUT_SECONDS),
        ("QUERY_RESPONSE_TIMEOUT_SECONDS", config.QUERY_RESPONSE_TIMEOUT_SECONDS),
    ]

    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )


__all__ = ["validate_runtime_config", "Entrypoint"]
