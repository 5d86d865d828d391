"""Exceptions raised by the retrieval engine."""
from __future__ import annotations

from .error_codes import ErrorCode


class DekaError(Exception):
    error_code: str = ErrorCode.INTERNAL

    def __init__(self, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.http_status = http_status

    def __str__(self) -> str:  # pragma: no cover - inherited behaviour
        return str(self.args[0]) if self.args else ""

    def describe(self) -> str:
        return f"{self.error_code}: {self}"


class TransientSourceError(DekaError):
    """Network, DNS or HTTP failure against either source."""

    error_code = ErrorCode.TRANSIENT_SOURCE


class StructuralParseError(DekaError):
    """Expected page structure is absent."""

    error_code = ErrorCode.STRUCTURAL_PARSE


class AutomationTimeoutError(DekaError):
    error_code = ErrorCode.AUTOMATION_TIMEOUT


class AutomationStepError(DekaError):
    error_code = ErrorCode.AUTOMATION_STEP


class SessionUnavailableError(DekaError):
    error_code = ErrorCode.SESSION_UNAVAILABLE


class InvalidQueryError(DekaError, ValueError):
    error_code = ErrorCode.INVALID_QUERY


def describe_error(exc: BaseException) -> str:
    """Return ``"<code>: <message>"`` for any exception."""

    if isinstance(exc, DekaError):
        return exc.describe()
    return f"{ErrorCode.INTERNAL}: {type(exc).__name__}: {exc}"


__all__ = [
    "AutomationStepError",
    "AutomationTimeoutError",
    "DekaError",
    "InvalidQueryError",
    "SessionUnavailableError",
    "StructuralParseError",
    "TransientSourceError",
    "describe_error",
]
