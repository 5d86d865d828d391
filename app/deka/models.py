"""Query, record and response types exchanged with the relay.

Inbound ``info`` objects are tagged by ``mode`` and use camelCase keys;
records and responses serialise with the snake_case keys the chat relay
already understands.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from . import config
from .errors import InvalidQueryError

MODE_NUMBER = "number"
MODE_SEARCH = "search"


@dataclass(frozen=True)
class CaseByNumber:
    serial: str
    year: int
    with_long_note: bool = False

    def __post_init__(self) -> None:
        if not self.serial or not self.serial.strip():
            raise InvalidQueryError("dekaSerial must not be empty")
        if self.year <= 0:
            raise InvalidQueryError(f"dekaYear must be positive, got {self.year}")

    @property
    def case_ref(self) -> str:
        return f"{self.serial}/{self.year}"


@dataclass(frozen=True)
class CaseBySearch:
    keywords: tuple[str, ...]
    law_name: Optional[str] = None
    law_section: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    with_long_note: bool = False

    def __post_init__(self) -> None:
        if not any(word.strip() for word in self.keywords):
            raise InvalidQueryError("searchWords must contain at least one keyword")
        if (
            self.year_from is not None
            and self.year_to is not None
            and self.year_to < self.year_from
        ):
            raise InvalidQueryError(
                f"caseTo ({self.year_to}) must not be earlier than caseFrom ({self.year_from})"
            )

    @property
    def effective_year_to(self) -> Optional[int]:
        """``year_to`` defaults to ``year_from`` when only the start is given."""

        return self.year_to if self.year_to is not None else self.year_from


CaseQuery = Union[CaseByNumber, CaseBySearch]


@dataclass
class CaseRecord:
    case_number: str
    short_note: str = ""
    long_note: Optional[str] = None
    statute_reference: str = ""
    source_descriptor: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "deka_no": self.case_number,
            "short_note": self.short_note,
            "long_note": self.long_note,
            "metadata": {
                "law": self.statute_reference,
                "source": self.source_descriptor,
            },
        }


@dataclass
class QueryPayload:
    """One inbound relay message: an opaque envelope plus the query."""

    message: Any
    info: CaseQuery


@dataclass
class ResponseOkay:
    message: Any
    result: Optional[list[CaseRecord]]
    sender: str = field(default=config.RESPONSE_FROM)

    ok = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.sender,
            "message": self.message,
            "result": None if self.result is None else [r.to_dict() for r in self.result],
        }


@dataclass
class ResponseErr:
    message: Any
    error: str
    sender: str = field(default=config.RESPONSE_FROM)

    ok = False

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.sender, "message": self.message, "error": self.error}


QueryResponse = Union[ResponseOkay, ResponseErr]


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: Any, key: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidQueryError(f"{key} must be an integer, got {value!r}") from exc


def _optional_bool(value: Any, key: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidQueryError(f"{key} must be true or false, got {value!r}")
    return value


def parse_query(info: Any) -> CaseQuery:
    """Build a :data:`CaseQuery` from the ``info`` object of a relay message."""

    if not isinstance(info, dict):
        raise InvalidQueryError("info must be an object")

    mode = str(info.get("mode") or "").strip().lower()
    with_long_note = _optional_bool(info.get("withLongNote"), "withLongNote")

    if mode == MODE_NUMBER:
        year = _optional_int(info.get("dekaYear"), "dekaYear")
        if year is None:
            raise InvalidQueryError("dekaYear is required")
        return CaseByNumber(
            serial=str(info.get("dekaSerial") or "").strip(),
            year=year,
            with_long_note=with_long_note,
        )

    if mode == MODE_SEARCH:
        words = info.get("searchWords") or []
        if isinstance(words, str) or not isinstance(words, (list, tuple)):
            raise InvalidQueryError("searchWords must be a list of strings")
        return CaseBySearch(
            keywords=tuple(str(word).strip() for word in words if str(word).strip()),
            law_name=_optional_str(info.get("searchLaw")),
            law_section=_optional_str(info.get("searchLawNo")),
            year_from=_optional_int(info.get("caseFrom"), "caseFrom"),
            year_to=_optional_int(info.get("caseTo"), "caseTo"),
            with_long_note=with_long_note,
        )

    raise InvalidQueryError(f"Unknown query mode {info.get('mode')!r}")


def parse_payload(data: Any) -> QueryPayload:
    """Parse a decoded ``{message, info}`` relay message."""

    if not isinstance(data, dict):
        raise InvalidQueryError("payload must be an object")
    if "message" not in data:
        raise InvalidQueryError("payload is missing the message envelope")
    return QueryPayload(message=data["message"], info=parse_query(data.get("info")))


def query_to_info(query: CaseQuery) -> dict[str, Any]:
    """Serialise a query back to its wire ``info`` object."""

    if isinstance(query, CaseByNumber):
        return {
            "mode": MODE_NUMBER,
            "dekaSerial": query.serial,
            "dekaYear": query.year,
            "withLongNote": query.with_long_note,
        }
    return {
        "mode": MODE_SEARCH,
        "searchWords": list(query.keywords),
        "searchLaw": query.law_name,
        "searchLawNo": query.law_section,
        "caseFrom": query.year_from,
        "caseTo": query.year_to,
        "withLongNote": query.with_long_note,
    }


__all__ = [
    "CaseByNumber",
    "CaseBySearch",
    "CaseQuery",
    "CaseRecord",
    "QueryPayload",
    "QueryResponse",
    "ResponseErr",
    "ResponseOkay",
    "parse_payload",
    "parse_query",
    "query_to_info",
]
