from __future__ import annotations

from typing import Any

from .utils import log_line

# Long free text (notes, page dumps) is cut to keep one event per line.
MAX_VALUE_CHARS = 200


def _query_fields(query: Any) -> dict[str, Any]:
    """Flatten a case query into the fields used to grep a lookup."""

    case_ref = getattr(query, "case_ref", None)
    if case_ref:
        return {"case_ref": case_ref, "long_note": query.with_long_note}
    keywords = getattr(query, "keywords", None)
    if keywords:
        return {
            "keywords": " ".join(keywords),
            "law": query.law_name,
            "long_note": query.with_long_note,
        }
    return {"query": query}


def _render(value: Any) -> str:
    text = repr(value)
    if len(text) > MAX_VALUE_CHARS:
        return f"{text[:MAX_VALUE_CHARS]}...(+{len(text) - MAX_VALUE_CHARS})"
    return text


def _deka_event(label: str = "", *, phase: str | None = None, query: Any = None, **fields: Any) -> None:
    """Emit a structured ``[DEKA][LABEL] k=v`` log line.

    ``phase`` doubles as the label when no label is given; when both are
    present it is kept in the payload so the stage is still visible. A
    ``query`` (number or search) is logged by its case reference or keywords
    so one lookup can be followed from mirror to court.
    """

    try:
        phase_label = label or (phase or "")
        if phase and label:
            fields.setdefault("phase", phase)
        if query is not None:
            for key, value in _query_fields(query).items():
                fields.setdefault(key, value)
        payload = ", ".join(f"{k}={_render(v)}" for k, v in sorted(fields.items()))
        log_line(f"[DEKA][{phase_label.upper()}] {payload}")
    except Exception:
        # Logging must never break a query.
        return


__all__ = ["MAX_VALUE_CHARS", "_deka_event"]
