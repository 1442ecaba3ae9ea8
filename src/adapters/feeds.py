"""Feed retrieval adapter.

Implements the core FeedPort for RSS/Atom feeds (parsed with feedparser)
and simple JSON news endpoints. Everything is mapped into RawItem so the
core never sees transport details.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

import feedparser
import requests

from core.config import FeedSource
from core.models import RawItem
from core.state import parse_published

LOGGER = logging.getLogger(__name__)

USER_AGENT = "Borderadar-Bot/FullOSINT"
DEFAULT_ITEMS_PER_SOURCE = 20

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(value: Any) -> str:
    """Turn an HTML summary into plain text suitable for keyword matching."""

    if not value:
        return ""
    text = _TAG_RE.sub(" ", str(value))
    return re.sub(r"\s+", " ", html.unescape(text)).strip()


def _from_struct_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _first(mapping: Any, *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


class HttpFeedFetcher:
    """FeedPort adapter for `rss` and `json` sources over HTTP."""

    def __init__(
        self,
        items_per_source: int = DEFAULT_ITEMS_PER_SOURCE,
        timeout: float = 20,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._limit = items_per_source
        self._timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

    def fetch(self, source: FeedSource) -> List[RawItem]:
        if source.type == "rss":
            return self._fetch_rss(source)
        if source.type == "json":
            return self._fetch_json(source)
        raise ValueError(f"Unsupported feed type: {source.type}")

    def _get(self, url: str) -> requests.Response:
        resp = self._session.get(url, headers={"User-Agent": USER_AGENT}, timeout=self._timeout)
        resp.raise_for_status()
        return resp

    def _fetch_rss(self, source: FeedSource) -> List[RawItem]:
        resp = self._get(source.url)
        parsed = feedparser.parse(resp.content)
        if parsed.bozo and not parsed.entries:
            raise ValueError(f"unparseable feed: {parsed.get('bozo_exception')}")
        return self.items_from_rss_entries(source, parsed.entries)

    def _fetch_json(self, source: FeedSource) -> List[RawItem]:
        return self.items_from_json(source, self._get(source.url).json())

    def items_from_rss_entries(self, source: FeedSource, entries: Iterable[Any]) -> List[RawItem]:
        now = self._clock()
        items: List[RawItem] = []
        for entry in list(entries)[: self._limit]:
            published = (
                _from_struct_time(entry.get("published_parsed"))
                or _from_struct_time(entry.get("updated_parsed"))
                or parse_published(_first(entry, "published", "updated"))
            )
            items.append(
                RawItem(
                    source=source.name,
                    title=strip_html(entry.get("title")),
                    link=str(entry.get("link") or ""),
                    published_at=published or now,
                    body=strip_html(_first(entry, "summary", "description")),
                )
            )
        return items

    def items_from_json(self, source: FeedSource, payload: Any) -> List[RawItem]:
        """Map a JSON payload with an items/articles/data list into RawItems."""

        if isinstance(payload, dict):
            entries = _first(payload, "items", "articles", "data") or []
        elif isinstance(payload, list):
            entries = payload
        else:
            entries = []

        now = self._clock()
        items: List[RawItem] = []
        for entry in entries[: self._limit]:
            if not isinstance(entry, dict):
                continue
            published = parse_published(_first(entry, "publishedAt", "pubDate", "isoDate", "published"))
            items.append(
                RawItem(
                    source=source.name,
                    title=strip_html(_first(entry, "title", "headline")),
                    link=str(_first(entry, "url", "link") or ""),
                    published_at=published or now,
                    body=strip_html(_first(entry, "description", "summary", "content")),
                )
            )
        LOGGER.debug("Parsed %s JSON items for %s", len(items), source.name)
        return items
