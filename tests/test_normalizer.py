from __future__ import annotations

import pytest

from app.deka import normalizer
from app.deka.errors import StructuralParseError
from app.deka.normalizer import (
    LAW_LINE_MAX_CHARS,
    MORE_MARKER,
    normalize,
    normalize_digits,
    parse_case_page,
    segment_lines,
)


def test_normalize_digits_maps_every_thai_numeral() -> None:
    assert normalize_digits("๐๑๒๓๔๕๖๗๘๙") == "0123456789"
    assert normalize_digits("คำพิพากษาศาลฎีกาที่ ๒๖๔/๒๕๖๗") == "คำพิพากษาศาลฎีกาที่ 264/2567"


def test_normalize_digits_is_identity_on_ascii() -> None:
    text = "264/2567 abc 0123456789"
    assert normalize_digits(text) == text
    assert normalize_digits(normalize_digits("๓๘๕๓/๒๕๖๖")) == "3853/2566"


def test_digit_table_is_a_bijection() -> None:
    thai = [pair[0] for pair in normalizer.THAI_DIGITS]
    ascii_digits = [pair[1] for pair in normalizer.THAI_DIGITS]
    assert len(set(thai)) == 10
    assert ascii_digits == [str(n) for n in range(10)]


def test_short_note_then_blank_line_enters_law_phase() -> None:
    segments = segment_lines(
        [
            "  จำเลยเช่าซื้อรถยนต์แล้วผิดนัด  ",
            "โจทก์ฟ้องเรียกค่าเสียหาย",
            "",
            "ป.พ.พ. มาตรา 420",
            "ป.พ.พ. มาตรา 572",
        ]
    )

    assert segments.short_note == "จำเลยเช่าซื้อรถยนต์แล้วผิดนัด\nโจทก์ฟ้องเรียกค่าเสียหาย\n"
    assert segments.law == "ป.พ.พ. มาตรา 420\nป.พ.พ. มาตรา 572\n"
    assert segments.long_note is None


def test_law_phase_drops_narrative_lines() -> None:
    narrative = "ก" * LAW_LINE_MAX_CHARS
    segments = segment_lines(["สรุปย่อ", "", "มาตรา 420", narrative, "มาตรา 421"])

    assert narrative not in segments.law
    assert segments.law == "มาตรา 420\nมาตรา 421\n"


def test_more_marker_starts_extended_note_until_end() -> None:
    segments = segment_lines(
        ["สรุปย่อ", f"  {MORE_MARKER} ", "ศาลฎีกาวินิจฉัยว่า ...", "", "มาตรา 420"]
    )

    assert segments.short_note == "สรุปย่อ\n"
    assert segments.long_note == "ศาลฎีกาวินิจฉัยว่า ...\n\nมาตรา 420\n"
    assert segments.law == ""


def test_blank_line_before_marker_sends_rest_to_law() -> None:
    segments = segment_lines(["สรุปย่อ", "", "มาตรา 420", MORE_MARKER, "ข้อความยาว"])

    assert segments.long_note is None
    assert segments.law == f"มาตรา 420\n{MORE_MARKER}\nข้อความยาว\n"


def test_law_phase_requires_a_short_note() -> None:
    segments = segment_lines(["", "มาตรา 420"])

    assert segments.short_note == ""
    assert segments.law == ""


def test_law_field_is_stable_when_refed() -> None:
    first = segment_lines(["สรุปย่อ", "", "มาตรา 420", "มาตรา 421", "พ.ร.บ. จราจรทางบก"])
    again = segment_lines(["สรุปย่อ", "", *first.law.splitlines()])

    assert again.law == first.law


def test_normalize_builds_record_with_ascii_case_number() -> None:
    record = normalize(" คำพิพากษาศาลฎีกาที่ ๒๖๔/๒๕๖๗ ", ["สรุปย่อ", "", "มาตรา 420"])

    assert record.case_number == "คำพิพากษาศาลฎีกาที่ 264/2567"
    assert record.case_number.endswith("264/2567")
    assert record.short_note == "สรุปย่อ\n"
    assert record.statute_reference == "มาตรา 420\n"
    assert record.long_note is None
    assert record.source_descriptor == ""


def test_normalize_rejects_empty_title() -> None:
    with pytest.raises(StructuralParseError):
        normalize("   ", ["สรุปย่อ"])


def test_parse_case_page_reads_title_and_body() -> None:
    html = (
        "<html><body>"
        '<h1 class="post-title">ฎีกาที่ ๓๘๕๓/๒๕๖๖</h1>'
        '<div class="post-body post-content">'
        "สรุปย่อคดี<br/>เพิ่มเติม<br/>ศาลฎีกาวินิจฉัยว่า จำเลยต้องรับผิด"
        "</div>"
        "</body></html>"
    )

    record = parse_case_page(html)

    assert record.case_number == "ฎีกาที่ 3853/2566"
    assert record.short_note == "สรุปย่อคดี\n"
    assert record.long_note == "ศาลฎีกาวินิจฉัยว่า จำเลยต้องรับผิด\n"
    assert record.statute_reference == ""


def test_parse_case_page_blank_line_starts_law_block() -> None:
    html = (
        "<html><body>"
        '<h1 class="post-title">ฎีกาที่ ๒๖๔/๒๕๖๗</h1>'
        '<div class="post-body post-content">สรุปย่อคดี\n\nมาตรา 420</div>'
        "</body></html>"
    )

    record = parse_case_page(html)

    assert record.short_note == "สรุปย่อคดี\n"
    assert record.statute_reference == "มาตรา 420\n"


@pytest.mark.parametrize(
    "html",
    [
        "<html><body><p>nothing here</p></body></html>",
        '<html><body><h1 class="post-title">ฎีกาที่ 1/2567</h1></body></html>',
        '<html><body><div class="post-body post-content">text</div></body></html>',
    ],
)
def test_parse_case_page_rejects_non_case_pages(html: str) -> None:
    with pytest.raises(StructuralParseError):
        parse_case_page(html)
