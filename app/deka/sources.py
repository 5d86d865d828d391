from __future__ import annotations

"""Logical sources a lookup may be pinned to.

``auto`` is the normal mirror-then-court pipeline; ``mirror`` and ``court``
pin a one-shot lookup to a single source (used by the CLI for diagnosis).
"""

import logging

LOGGER = logging.getLogger("deka")

AUTO = "auto"
MIRROR = "mirror"
COURT = "court"

DEFAULT_SOURCE = AUTO

ALL_SOURCES = (AUTO, MIRROR, COURT)

_AUTO_ALIASES = {"auto", "default", "both", "all"}
_MIRROR_ALIASES = {"mirror", "dekasuksa", "dks"}
_COURT_ALIASES = {"court", "supremecourt", "supreme-court", "spc"}


def normalize_source(value: str | None) -> str:
    """Return a canonical logical source identifier.

    Unknown or empty values fall back to ``DEFAULT_SOURCE``.
    """

    if not value:
        return DEFAULT_SOURCE

    raw = value.strip().lower()
    if raw in _AUTO_ALIASES:
        return AUTO
    if raw in _MIRROR_ALIASES:
        return MIRROR
    if raw in _COURT_ALIASES:
        return COURT

    return DEFAULT_SOURCE


def coerce_source(raw: str | None) -> str:
    """Normalise a raw source value, warning when it is not recognised."""

    if not raw:
        return DEFAULT_SOURCE

    normalized = normalize_source(raw)
    if normalized == DEFAULT_SOURCE and raw.strip().lower() not in _AUTO_ALIASES:
        LOGGER.warning("[SOURCES][WARN] Unknown source %r; using default.", raw)
    return normalized


__all__ = ["ALL_SOURCES", "AUTO", "COURT", "MIRROR", "coerce_source", "normalize_source"]
