"""HTTP lookups against the mirror site.

The mirror is a blog: its search page lists posts, one per case. Each
candidate post is fetched in parallel and run through the normalizer. A
post that fails to load or does not look like a case is dropped; only a
failure on the listing itself is raised to the caller.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Union
from urllib.parse import urlencode, urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from . import config
from .errors import StructuralParseError, TransientSourceError
from .logging_utils import _deka_event
from .models import CaseRecord
from .normalizer import extract_page_parts, normalize
from .site_selectors import MIRROR_SELECTORS, MirrorSelectors
from .utils import log_line


def build_search_url(query_text: str, base_url: Optional[str] = None) -> str:
    """Return the mirror search URL for ``query_text``."""

    base = base_url if base_url is not None else config.MIRROR_SEARCH_URL
    parsed = urlparse(base)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise TransientSourceError(f"Invalid mirror search URL {base!r}")
    separator = "&" if parsed.query else "?"
    return f"{base}{separator}{urlencode({'q': query_text})}"


def parse_listing(
    html: Union[str, bytes], page_url: str, *, selectors: MirrorSelectors = MIRROR_SELECTORS
) -> list[str]:
    """Return absolute candidate links from a search listing page."""

    try:
        soup = BeautifulSoup(html, "html5lib")
        links: list[str] = []
        for post in soup.select(selectors.listing_item):
            anchor = post.select_one(selectors.listing_link)
            if anchor is None:
                continue
            href = (anchor.get("href") or "").strip()
            if href:
                links.append(urljoin(page_url, href))
        return links
    except Exception as exc:  # noqa: BLE001
        raise StructuralParseError(f"Unable to parse mirror listing: {exc}") from exc


def _decode(content: bytes) -> str:
    # The mirror serves UTF-8 without always declaring it.
    return content.decode("utf-8", errors="replace")


def _get_listing(http: Any, url: str) -> str:
    try:
        response = http.get(url, headers=config.COMMON_HEADERS, timeout=config.MIRROR_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = getattr(exc.response, "status_code", None)
        raise TransientSourceError(f"Mirror listing returned HTTP {status}", http_status=status) from exc
    except requests.RequestException as exc:
        raise TransientSourceError(f"Mirror listing request failed: {exc}") from exc
    return _decode(response.content)


def _load_candidate(http: Any, url: str) -> Optional[CaseRecord]:
    """Fetch and normalise one case page, or ``None`` when it is unusable."""

    try:
        response = http.get(url, headers=config.COMMON_HEADERS, timeout=config.MIRROR_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        _deka_event("mirror", step="page_error", url=url, error=str(exc))
        return None

    if response.status_code != 200:
        _deka_event("mirror", step="page_status", url=url, http_status=response.status_code)
        return None

    try:
        title, body_lines = extract_page_parts(_decode(response.content))
        return normalize(title, body_lines)
    except StructuralParseError as exc:
        _deka_event("mirror", step="page_dropped", url=url, error=str(exc))
        return None


def fetch_mirror(
    query_text: str,
    *,
    http_client: Optional[Any] = None,
    base_url: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> list[CaseRecord]:
    """Search the mirror and return the case records it yields.

    An empty list means the search ran and found nothing usable. Listing
    failures raise :class:`TransientSourceError` or
    :class:`StructuralParseError`.
    """

    url = build_search_url(query_text, base_url)
    owns_client = http_client is None
    http = http_client if http_client is not None else requests.Session()

    try:
        _deka_event("mirror", step="listing", url=url)
        links = parse_listing(_get_listing(http, url), url)
        if not links:
            _deka_event("mirror", step="listing_empty", query=query_text)
            return []

        workers = max(1, min(len(links), max_workers or config.MIRROR_MAX_WORKERS))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order, so results line up with links.
            loaded = list(executor.map(lambda link: _load_candidate(http, link), links))
    finally:
        if owns_client:
            http.close()

    records: list[CaseRecord] = []
    for link, record in zip(links, loaded):
        if record is None:
            continue
        record.source_descriptor = f"{config.MIRROR_DISPLAY_NAME} {link}"
        records.append(record)

    _deka_event(
        "mirror",
        step="done",
        query=query_text,
        candidates=len(links),
        records=len(records),
    )
    log_line(f"[MIRROR] {len(records)}/{len(links)} case pages parsed for {query_text!r}")
    return records


__all__ = ["build_search_url", "fetch_mirror", "parse_listing"]
