from __future__ import annotations

from typing import Any

import pytest

from app.deka import cli, sources
from app.deka.errors import TransientSourceError
from app.deka.models import CaseByNumber, CaseBySearch, CaseRecord, ResponseErr, ResponseOkay


class FakeSession:
    instances: list["FakeSession"] = []

    def __init__(self) -> None:
        self.closed = False
        FakeSession.instances.append(self)

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.closed = True


def test_parser_builds_number_query() -> None:
    args = cli.build_parser().parse_args(["--long-note", "number", "264", "2567"])

    assert cli.query_from_args(args) == CaseByNumber("264", 2567, with_long_note=True)
    assert args.screenshots is None


def test_parser_builds_search_query() -> None:
    args = cli.build_parser().parse_args(
        ["search", "เช่าซื้อ", "รถยนต์", "--law", "ป.พ.พ.", "--section", "572", "--from", "2560"]
    )

    query = cli.query_from_args(args)
    assert query == CaseBySearch(
        keywords=("เช่าซื้อ", "รถยนต์"), law_name="ป.พ.พ.", law_section="572", year_from=2560
    )


def test_mirror_source_never_opens_browser(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeSession.instances = []
    monkeypatch.setattr(cli, "BrowserSession", FakeSession)
    monkeypatch.setattr(cli, "fetch_mirror", lambda text: [CaseRecord(text)])

    response = cli.run_query(CaseByNumber("264", 2567), source=sources.MIRROR)

    assert isinstance(response, ResponseOkay)
    assert response.result[0].case_number == "264/2567"
    assert FakeSession.instances == []


def test_mirror_source_failure_is_error_response(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(text: str) -> list:
        raise TransientSourceError("dns")

    monkeypatch.setattr(cli, "fetch_mirror", _fail)

    response = cli.run_query(CaseByNumber("264", 2567), source=sources.MIRROR)

    assert isinstance(response, ResponseErr)
    assert "transient_source_error: dns" in response.error


def test_court_source_skips_mirror(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeSession.instances = []
    seen: dict[str, Any] = {}

    def _automation(session: Any, query: Any, *, with_screenshot: Any = None) -> list:
        seen["screenshot"] = with_screenshot
        return [CaseRecord("264/2567")]

    monkeypatch.setattr(cli, "BrowserSession", FakeSession)
    monkeypatch.setattr(cli, "run_automation", _automation)
    monkeypatch.setattr(cli, "fetch_mirror", lambda text: pytest.fail("mirror must not be used"))

    response = cli.run_query(CaseByNumber("264", 2567), source=sources.COURT, with_screenshot=True)

    assert isinstance(response, ResponseOkay)
    assert seen["screenshot"] is True
    assert FakeSession.instances[0].closed is True
