"""Command line entrypoint for one-shot case lookups.

Examples::

    python -m app.deka.cli number 264 2567
    python -m app.deka.cli search เช่าซื้อ รถยนต์ --law "ประมวลกฎหมายแพ่งและพาณิชย์" \
        --section 420 --from 2560 --to 2567 --long-note
"""
from __future__ import annotations

import argparse
import json
from typing import Any, List, Optional

from . import sources
from .automation import run_automation
from .config_validation import validate_runtime_config
from .dispatcher import QueryDispatcher, error_response, matching_records, mirror_query_text
from .errors import DekaError
from .mirror import fetch_mirror
from .models import (
    CaseByNumber,
    CaseBySearch,
    CaseQuery,
    QueryPayload,
    QueryResponse,
    ResponseOkay,
    query_to_info,
)
from .session import BrowserSession
from .utils import ensure_dirs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Look up Thai Supreme Court cases")
    parser.add_argument(
        "--source",
        default=None,
        help="auto (mirror, then court), mirror or court. Unknown values fall back to auto.",
    )
    parser.add_argument("--long-note", action="store_true", help="Fetch the full reasoning text")
    parser.add_argument(
        "--screenshots",
        action="store_true",
        default=None,
        help="Save debug screenshots of the court forms",
    )

    sub = parser.add_subparsers(dest="mode", required=True)

    number = sub.add_parser("number", help="Look up a case by serial and year")
    number.add_argument("serial")
    number.add_argument("year", type=int)

    search = sub.add_parser("search", help="Search cases by keywords")
    search.add_argument("words", nargs="+")
    search.add_argument("--law", default=None)
    search.add_argument("--section", default=None)
    search.add_argument("--from", dest="year_from", type=int, default=None)
    search.add_argument("--to", dest="year_to", type=int, default=None)
    return parser


def query_from_args(args: argparse.Namespace) -> CaseQuery:
    if args.mode == "number":
        return CaseByNumber(serial=args.serial, year=args.year, with_long_note=args.long_note)
    return CaseBySearch(
        keywords=tuple(args.words),
        law_name=args.law,
        law_section=args.section,
        year_from=args.year_from,
        year_to=args.year_to,
        with_long_note=args.long_note,
    )


def run_query(query: CaseQuery, *, source: str, with_screenshot: Optional[bool] = None) -> QueryResponse:
    payload = QueryPayload(message={"info": query_to_info(query)}, info=query)

    if source == sources.MIRROR:
        try:
            records = matching_records(query, fetch_mirror(mirror_query_text(query)))
            return ResponseOkay(message=payload.message, result=records)
        except DekaError as exc:
            return error_response(payload, exc)

    try:
        with BrowserSession() as session:
            if source == sources.COURT:
                records = run_automation(session, query, with_screenshot=with_screenshot)
                return ResponseOkay(message=payload.message, result=records)

            def _automation(sess: Any, q: CaseQuery) -> list:
                return run_automation(sess, q, with_screenshot=with_screenshot)

            return QueryDispatcher(session, automation=_automation).dispatch(payload)
    except DekaError as exc:
        return error_response(payload, exc)


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:  # pragma: no cover
    parser = build_parser()
    args = parser.parse_args(argv)

    ensure_dirs()
    validate_runtime_config("cli")
    try:
        query = query_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    response = run_query(
        query,
        source=sources.coerce_source(args.source),
        with_screenshot=args.screenshots,
    )
    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    return 0 if response.ok else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli_entrypoint())

__all__ = ["build_parser", "query_from_args", "run_query", "_cli_entrypoint"]
