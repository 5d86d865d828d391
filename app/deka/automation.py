"""Playwright automation of the Supreme Court search site.

Workflow for one query (always inside its own tab):

- Open the search page and fill either the basic form (case number, or
  keywords with an optional year range) or, when a law name is given, the
  advanced form with the law picked from the autocomplete dropdown.
- Submit and wait for ``/search`` plus the ``#deka_result_info`` marker.
- Optionally tick "show long text" so long notes render inline.
- Read every ``li.result`` item; unreadable items are dropped.
- When long notes were requested but some are still missing, open the
  print view and match its reasoning paragraphs back by case number.

Any failed wait or interaction aborts the query with
:class:`AutomationTimeoutError` or :class:`AutomationStepError`.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional
from urllib.parse import urlparse

from playwright.sync_api import Error as PWError, Page, TimeoutError as PWTimeout

from . import config
from .errors import AutomationStepError, AutomationTimeoutError, StructuralParseError
from .logging_utils import _deka_event
from .models import CaseByNumber, CaseBySearch, CaseQuery, CaseRecord
from .normalizer import normalize_digits
from .site_selectors import COURT_SELECTORS, HIDDEN_DEKA_NO_PATTERN, PRINT_DEKA_NO_PATTERN
from .utils import log_line, timestamped_artifact_path

SEL = COURT_SELECTORS


def _ms(seconds: float) -> int:
    return int(seconds * 1000)


@contextmanager
def _step(name: str, **fields: Any) -> Iterator[None]:
    """Run one automation step, translating Playwright failures."""

    _deka_event("court", step=name, **fields)
    try:
        yield
    except PWTimeout as exc:
        _deka_event("error", phase="court", step=f"{name}_timeout", error=str(exc))
        raise AutomationTimeoutError(f"{name} timed out: {exc}") from exc
    except PWError as exc:
        _deka_event("error", phase="court", step=f"{name}_error", error=str(exc))
        raise AutomationStepError(f"{name} failed: {exc}") from exc


def _path_is(path: str) -> Callable[[str], bool]:
    return lambda url: urlparse(url).path == path


def capture_screenshot(page: Page, name: str) -> None:
    """Save a debug screenshot; failures are logged and ignored."""

    path = timestamped_artifact_path(name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(path), full_page=True)
        log_line(f"Saved debug screenshot -> {path}")
    except Exception as exc:  # noqa: BLE001
        log_line(f"Failed to save debug screenshot: {exc}")


def open_search_page(page: Page) -> None:
    with _step("open", url=config.COURT_BASE_URL):
        page.goto(
            config.COURT_BASE_URL,
            wait_until="domcontentloaded",
            timeout=_ms(config.NAV_TIMEOUT_SECONDS),
        )


def _fill_year_range(page: Page, start_selector: str, end_selector: str, start: int, end: int) -> None:
    page.fill(start_selector, str(start))
    page.fill(end_selector, str(end))


def fill_number_form(page: Page, query: CaseByNumber) -> None:
    with _step("fill_number_form", case_ref=query.case_ref):
        page.select_option(SEL.basic_doctype, label=SEL.doctype_label)
        page.fill(SEL.basic_deka_no, query.serial)
        _fill_year_range(page, SEL.basic_start_year, SEL.basic_end_year, query.year, query.year)


def choose_law(page: Page, law_name: str) -> bool:
    """Click the first autocomplete entry containing ``law_name``."""

    page.wait_for_selector(
        SEL.autocomplete_menu,
        state="visible",
        timeout=_ms(config.AUTOCOMPLETE_TIMEOUT_SECONDS),
    )
    for entry in page.locator(SEL.autocomplete_entry).all():
        if law_name in entry.inner_text():
            entry.click()
            return True
    log_line(f"[COURT] No autocomplete entry matched law {law_name!r}; continuing without it")
    return False


def fill_search_form(page: Page, query: CaseBySearch) -> str:
    """Fill the basic or advanced search form; return the submit selector."""

    keywords = SEL.keyword_conjunction.join(query.keywords)
    year_to = query.effective_year_to

    if query.law_name:
        with _step("fill_advanced_form", law=query.law_name):
            page.click(SEL.advanced_tab)
            page.wait_for_selector(
                SEL.advanced_pane, timeout=_ms(config.AUTOCOMPLETE_TIMEOUT_SECONDS)
            )
            page.select_option(SEL.advanced_doctype, label=SEL.doctype_label)
            page.fill(SEL.advanced_words, keywords)
            page.click(SEL.advanced_law_name)
            page.fill(SEL.advanced_law_name, query.law_name)
            choose_law(page, query.law_name)
            if query.law_section:
                page.fill(SEL.advanced_law_section, query.law_section)
            if query.year_from is not None and year_to is not None:
                _fill_year_range(
                    page, SEL.advanced_start_year, SEL.advanced_end_year, query.year_from, year_to
                )
            page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        return SEL.advanced_submit

    with _step("fill_basic_form"):
        page.select_option(SEL.basic_doctype, label=SEL.doctype_label)
        page.fill(SEL.basic_words, keywords)
        if query.year_from is not None and year_to is not None:
            _fill_year_range(page, SEL.basic_start_year, SEL.basic_end_year, query.year_from, year_to)
    return SEL.basic_submit


def submit(page: Page, selector: str) -> None:
    with _step("submit", selector=selector):
        page.click(selector)


def wait_for_results(page: Page, with_long_note: bool) -> None:
    with _step("wait_results"):
        page.wait_for_url(
            _path_is(config.COURT_RESULTS_PATH),
            timeout=_ms(config.RESULT_TIMEOUT_SECONDS),
        )
        page.wait_for_selector(SEL.result_marker, timeout=_ms(config.SELECTOR_TIMEOUT_SECONDS))

    if with_long_note:
        with _step("expand_long_note"):
            page.click(SEL.long_note_menu)
            page.wait_for_selector(
                SEL.long_note_checkbox,
                state="attached",
                timeout=_ms(config.SELECTOR_TIMEOUT_SECONDS),
            )
            page.click(SEL.long_note_label)


def extract_case_number(raw: str) -> str:
    """Pull the case number out of the hidden result field.

    Thai numerals are mapped to ASCII digits. Falls back to the whole
    (stripped) field when the pattern does not yield a case number.
    """

    text = normalize_digits(raw).strip()
    match = HIDDEN_DEKA_NO_PATTERN.match(text)
    if match:
        candidate = match.group("deka_no").strip()
        if candidate:
            return candidate
    return text


def _visible_text(item: Any, selector: str) -> Optional[str]:
    target = item.locator(selector)
    if target.count() == 0 or not target.first.is_visible():
        return None
    text = target.first.inner_text().strip()
    return text or None


def _required_text(item: Any, selector: str) -> str:
    target = item.locator(selector)
    if target.count() == 0:
        raise StructuralParseError(f"result item has no {selector}")
    return target.first.inner_text().strip()


def read_result_item(item: Any, with_long_note: bool = False) -> CaseRecord:
    """Read one result item.

    The long note is only taken when it was requested and the toggle left
    it rendered; the untoggled page keeps it in the DOM but hidden.
    """

    hidden = item.locator(SEL.item_deka_no)
    raw = hidden.first.get_attribute("value") if hidden.count() else None
    case_number = extract_case_number(raw or "")
    if not case_number:
        raise StructuralParseError("result item has no case number")

    return CaseRecord(
        case_number=case_number,
        short_note=_required_text(item, SEL.item_short_text),
        long_note=_visible_text(item, SEL.item_long_text) if with_long_note else None,
        statute_reference=_required_text(item, SEL.item_law),
        source_descriptor=_required_text(item, SEL.item_source),
    )


def collect_results(page: Page, with_long_note: bool = False) -> list[CaseRecord]:
    with _step("collect_results"):
        items = page.locator(SEL.result_item).all()

    records: list[CaseRecord] = []
    for index, item in enumerate(items):
        try:
            records.append(read_result_item(item, with_long_note))
        except (PWError, StructuralParseError) as exc:
            _deka_event("court", step="item_dropped", index=index, error=str(exc))
    _deka_event("court", step="collected", items=len(items), records=len(records))
    return records


def needs_print_view(records: list[CaseRecord], with_long_note: bool) -> bool:
    return with_long_note and any(record.long_note is None for record in records)


def _read_print_block(block: Any) -> tuple[Optional[str], str]:
    """Return the block's case number and its reasoning text.

    Reasoning paragraphs are joined with newlines so each stays on its own
    line. When several headings carry a case number the last one wins.
    """

    paragraphs = block.locator(SEL.print_paragraph).all_inner_texts()
    headings = block.locator(SEL.print_heading).all_inner_texts()

    note = "\n".join(text.strip() for text in paragraphs if SEL.reasoning_marker in text)
    deka_no: Optional[str] = None
    for heading in headings:
        match = PRINT_DEKA_NO_PATTERN.match(heading.strip())
        if match:
            deka_no = normalize_digits(match.group("deka_no")).strip()
    return deka_no, note


def fill_long_notes_from_print_view(page: Page, records: list[CaseRecord]) -> int:
    """Fill missing long notes from the print view; return how many were filled."""

    with _step("print_view"):
        page.click(SEL.print_choose_all)
        page.click(SEL.print_submit)
        page.wait_for_url(
            _path_is(config.COURT_PRINT_PATH),
            timeout=_ms(config.RESULT_TIMEOUT_SECONDS),
        )
        blocks = page.locator(SEL.print_page).all()

    notes: dict[str, str] = {}
    for index, block in enumerate(blocks):
        try:
            deka_no, note = _read_print_block(block)
        except PWError as exc:
            _deka_event("court", step="print_block_dropped", index=index, error=str(exc))
            continue
        if deka_no and note:
            notes[deka_no] = note

    filled = 0
    for record in records:
        if record.long_note is None and record.case_number in notes:
            record.long_note = notes[record.case_number]
            filled += 1
    _deka_event("court", step="print_matched", blocks=len(blocks), filled=filled)
    return filled


def _finish_query(page: Page, with_long_note: bool) -> list[CaseRecord]:
    wait_for_results(page, with_long_note)
    records = collect_results(page, with_long_note)
    if needs_print_view(records, with_long_note):
        fill_long_notes_from_print_view(page, records)
    return records


def _screenshots_enabled(with_screenshot: Optional[bool]) -> bool:
    return config.DEBUG_SCREENSHOTS if with_screenshot is None else with_screenshot


def search_by_number(
    session: Any, query: CaseByNumber, *, with_screenshot: Optional[bool] = None
) -> list[CaseRecord]:
    shots = _screenshots_enabled(with_screenshot)
    name = f"deka.supremecourt-no-{query.serial}-{query.year}"

    with session.query_page() as page:
        open_search_page(page)
        fill_number_form(page, query)
        if shots:
            capture_screenshot(page, f"deka.supremecourt-no-form-{query.serial}-{query.year}")
        submit(page, SEL.basic_submit)
        try:
            return _finish_query(page, query.with_long_note)
        finally:
            if shots:
                capture_screenshot(page, name)


def search_by_keywords(
    session: Any, query: CaseBySearch, *, with_screenshot: Optional[bool] = None
) -> list[CaseRecord]:
    shots = _screenshots_enabled(with_screenshot)
    keywords = SEL.keyword_conjunction.join(query.keywords)

    with session.query_page() as page:
        open_search_page(page)
        submit_selector = fill_search_form(page, query)
        submit(page, submit_selector)
        try:
            return _finish_query(page, query.with_long_note)
        finally:
            if shots:
                capture_screenshot(page, f"deka.supremecourt-search-{keywords}")


def run_automation(
    session: Any, query: CaseQuery, *, with_screenshot: Optional[bool] = None
) -> list[CaseRecord]:
    """Run the court workflow matching ``query``'s variant."""

    if isinstance(query, CaseByNumber):
        return search_by_number(session, query, with_screenshot=with_screenshot)
    return search_by_keywords(session, query, with_screenshot=with_screenshot)


__all__ = [
    "capture_screenshot",
    "collect_results",
    "extract_case_number",
    "fill_long_notes_from_print_view",
    "needs_print_view",
    "run_automation",
    "search_by_keywords",
    "search_by_number",
]
