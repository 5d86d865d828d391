from __future__ import annotations

"""Selectors, form labels and patterns for the two case sources."""

import re
from dataclasses import dataclass
from typing import Pattern


@dataclass(frozen=True)
class MirrorSelectors:
    """Blog-style mirror: a search listing of posts, one post per case.

    The case page has no field markup; the title carries the case number and
    the body is a single text dump handled by the normalizer.
    """

    listing_item: str = ".blog-posts .blog-post"
    listing_link: str = ".post-title a"
    page_title: str = "h1.post-title"
    page_body: str = ".post-body.post-content"


@dataclass(frozen=True)
class CourtSelectors:
    """Supreme Court search site, driven through its own forms."""

    doctype_label: str = "คำพิพากษาศาลฎีกา"
    keyword_conjunction: str = " .และ. "

    basic_form: str = "#basic_search"
    basic_doctype: str = "#search_doctype"
    basic_words: str = "#search_word"
    basic_deka_no: str = "#search_deka_no"
    basic_start_year: str = "#search_deka_start_year"
    basic_end_year: str = "#search_deka_end_year"
    basic_submit: str = "#submit_search_deka"

    advanced_tab: str = '#search-tab a[href="#advance-search"]'
    advanced_pane: str = "#advance-search"
    advanced_doctype: str = "#adv_search_doctype"
    advanced_words: str = "#adv_search_word_stext_and_ltext"
    advanced_law_name: str = "#adv_search_temp_law_name"
    advanced_law_section: str = "#adv_search_temp_law_section"
    advanced_start_year: str = "#adv_search_deka_start_year"
    advanced_end_year: str = "#adv_search_deka_end_year"
    advanced_submit: str = "#submit_adv_search_deka"
    autocomplete_menu: str = "ul.ui-autocomplete"
    autocomplete_entry: str = "ul.ui-autocomplete li a"

    result_marker: str = "#deka_result_info"
    result_item: str = "#deka_result_info li.result"
    item_deka_no: str = ".item_deka_no input[type=hidden]"
    item_short_text: str = ".item_short_text"
    item_long_text: str = ".item_long_text"
    item_law: str = ".item_law>ul"
    item_source: str = ".item_source>ul"

    long_note_menu: str = "#btn-show-result-item"
    long_note_checkbox: str = "#show_item_long_text"
    long_note_label: str = 'label[for="show_item_long_text"]'

    print_choose_all: str = "#choose_all_deka"
    print_submit: str = "#print_choose_deka"
    print_page: str = "#print-layer page"
    print_paragraph: str = ".row>.col-lg-12"
    print_heading: str = "div>p"
    reasoning_marker: str = "ศาลฎีกาวินิจฉัยว่า"


MIRROR_SELECTORS = MirrorSelectors()
COURT_SELECTORS = CourtSelectors()

# Hidden result field: "<label> <case number>"; everything after the last
# whitespace run is the case number.
HIDDEN_DEKA_NO_PATTERN: Pattern[str] = re.compile(r"^(.*)\s+(?P<deka_no>.*)$", re.DOTALL)
# Print view heading: "คำพิพากษาศาลฎีกาที่ 264/2567".
PRINT_DEKA_NO_PATTERN: Pattern[str] = re.compile(r"^คำ.*ศาลฎีกาที่\s+(?P<deka_no>.*)$")

__all__ = [
    "COURT_SELECTORS",
    "CourtSelectors",
    "HIDDEN_DEKA_NO_PATTERN",
    "MIRROR_SELECTORS",
    "MirrorSelectors",
    "PRINT_DEKA_NO_PATTERN",
]
