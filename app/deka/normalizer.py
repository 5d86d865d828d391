"""Split a mirror case page into a structured :class:`CaseRecord`.

The mirror publishes each case as one blog post whose body is an unmarked
text dump. The body is read line by line through a three-phase classifier:

``SHORT_NOTE``
    Lines accumulate into the short note. A line equal to ``เพิ่มเติม``
    ("more") moves to ``EXTENDED_NOTE``; an empty line moves to
    ``LAW_METADATA``.
``LAW_METADATA``
    Terminal. Lines shorter than ``LAW_LINE_MAX_CHARS`` are statute text,
    provided a short note was collected; longer lines are narrative and
    are discarded.
``EXTENDED_NOTE``
    Terminal. Every remaining line belongs to the extended note.

A blank line inside the short note therefore ends it early. Pages written
that way lose the rest of their short note to the statute field.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from bs4 import BeautifulSoup

from .errors import StructuralParseError
from .models import CaseRecord
from .site_selectors import MIRROR_SELECTORS, MirrorSelectors

MORE_MARKER = "เพิ่มเติม"
LAW_LINE_MAX_CHARS = 100

# Thai numerals, in order, to ASCII digits.
THAI_DIGITS: tuple[tuple[str, str], ...] = (
    ("๐", "0"),
    ("๑", "1"),
    ("๒", "2"),
    ("๓", "3"),
    ("๔", "4"),
    ("๕", "5"),
    ("๖", "6"),
    ("๗", "7"),
    ("๘", "8"),
    ("๙", "9"),
)


class Phase(Enum):
    SHORT_NOTE = "short_note"
    LAW_METADATA = "law_metadata"
    EXTENDED_NOTE = "extended_note"


@dataclass
class Segments:
    short_note: str
    long_note: Optional[str]
    law: str


def normalize_digits(text: str) -> str:
    """Replace Thai numerals with ASCII digits; other characters pass through."""

    for thai, ascii_digit in THAI_DIGITS:
        text = text.replace(thai, ascii_digit)
    return text


def _next_phase(phase: Phase, line: str) -> Phase:
    if phase is Phase.SHORT_NOTE:
        if line == MORE_MARKER:
            return Phase.EXTENDED_NOTE
        if not line:
            return Phase.LAW_METADATA
    return phase


def segment_lines(lines: Iterable[str]) -> Segments:
    """Partition body lines into short note, extended note and statute text."""

    phase = Phase.SHORT_NOTE
    short_lines: list[str] = []
    law_lines: list[str] = []
    long_lines: Optional[list[str]] = None

    for raw in lines:
        line = raw.strip()
        next_phase = _next_phase(phase, line)
        if next_phase is not phase:
            phase = next_phase
            if phase is Phase.EXTENDED_NOTE:
                long_lines = []
            # The transition line itself belongs to no field.
            continue

        if phase is Phase.SHORT_NOTE:
            short_lines.append(line)
        elif phase is Phase.LAW_METADATA:
            if len(line) < LAW_LINE_MAX_CHARS and short_lines:
                law_lines.append(line)
        elif long_lines is not None:
            long_lines.append(line)

    return Segments(
        short_note=_join(short_lines),
        long_note=None if long_lines is None else _join(long_lines),
        law=_join(law_lines),
    )


def _join(lines: Sequence[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def normalize(title: str, body_lines: Sequence[str]) -> CaseRecord:
    """Build a record from a case title and its body lines.

    The source descriptor is left empty; the caller knows where the page
    came from.
    """

    case_number = normalize_digits(title).strip()
    if not case_number:
        raise StructuralParseError("case page title is empty")

    segments = segment_lines(body_lines)
    return CaseRecord(
        case_number=case_number,
        short_note=segments.short_note,
        long_note=segments.long_note,
        statute_reference=segments.law,
    )


def extract_page_parts(
    html: str, *, selectors: MirrorSelectors = MIRROR_SELECTORS
) -> tuple[str, list[str]]:
    """Return ``(title, body_lines)`` from a mirror case page."""

    soup = BeautifulSoup(html, "html5lib")
    title_node = soup.select_one(selectors.page_title)
    body_node = soup.select_one(selectors.page_body)
    if title_node is None or body_node is None:
        missing = [
            name
            for name, node in (("title", title_node), ("body", body_node))
            if node is None
        ]
        raise StructuralParseError(f"not a case page: missing {', '.join(missing)}")

    title = title_node.get_text()
    body = body_node.get_text("\n").strip()
    return title, body.splitlines()


def parse_case_page(html: str) -> CaseRecord:
    title, body_lines = extract_page_parts(html)
    return normalize(title, body_lines)


__all__ = [
    "LAW_LINE_MAX_CHARS",
    "MORE_MARKER",
    "Phase",
    "Segments",
    "THAI_DIGITS",
    "extract_page_parts",
    "normalize",
    "normalize_digits",
    "parse_case_page",
    "segment_lines",
]
