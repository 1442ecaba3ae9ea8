from __future__ import annotations

import time
from datetime import datetime, timezone

import pytest

from adapters.feeds import HttpFeedFetcher, strip_html
from core.config import FeedSource
from core.state import parse_published

NOW = datetime(2024, 7, 24, 9, 0, tzinfo=timezone.utc)
JSON_SOURCE = FeedSource(name="Gov feed", type="json", url="https://gov.example/api")
RSS_SOURCE = FeedSource(name="BBC", type="rss", url="https://bbc.example/rss")


def _fetcher(limit: int = 20) -> HttpFeedFetcher:
    return HttpFeedFetcher(items_per_source=limit, clock=lambda: NOW)


def test_json_items_use_field_fallbacks() -> None:
    payload = {
        "articles": [
            {
                "headline": "Border clash",
                "url": "https://gov.example/1",
                "publishedAt": "2024-07-24T06:00:00Z",
                "summary": "<p>Troops &amp; tanks</p>",
            },
            {"title": "No date", "link": "https://gov.example/2"},
            "not an object",
        ]
    }
    items = _fetcher().items_from_json(JSON_SOURCE, payload)
    assert [item.title for item in items] == ["Border clash", "No date"]
    assert items[0].source == "Gov feed"
    assert items[0].link == "https://gov.example/1"
    assert items[0].published_at == datetime(2024, 7, 24, 6, 0, tzinfo=timezone.utc)
    assert items[0].body == "Troops & tanks"
    assert items[1].published_at == NOW
    assert items[1].body == ""


def test_json_items_are_limited_per_source() -> None:
    payload = {"items": [{"title": f"t{i}", "url": f"https://x/{i}"} for i in range(30)]}
    assert len(_fetcher(limit=20).items_from_json(JSON_SOURCE, payload)) == 20


def test_json_payload_without_list_is_empty() -> None:
    assert _fetcher().items_from_json(JSON_SOURCE, {"status": "ok"}) == []


def test_rss_entries_prefer_parsed_times() -> None:
    entries = [
        {
            "title": "Shelling near Surin",
            "link": "https://bbc.example/1",
            "published_parsed": time.struct_time((2024, 7, 24, 5, 30, 0, 2, 206, 0)),
            "summary": "Villagers <b>evacuate</b>",
        },
        {
            "title": "Drone sighted",
            "link": "https://bbc.example/2",
            "published": "Wed, 24 Jul 2024 04:00:00 +0700",
        },
    ]
    items = _fetcher().items_from_rss_entries(RSS_SOURCE, entries)
    assert items[0].published_at == datetime(2024, 7, 24, 5, 30, tzinfo=timezone.utc)
    assert items[0].body == "Villagers evacuate"
    assert items[1].published_at == datetime(2024, 7, 23, 21, 0, tzinfo=timezone.utc)


def test_parse_published_formats() -> None:
    assert parse_published("2024-07-24T06:00:00") == datetime(2024, 7, 24, 6, 0, tzinfo=timezone.utc)
    assert parse_published("garbage") is None
    assert parse_published(None) is None


def test_strip_html() -> None:
    assert strip_html("<p>Hello&nbsp;<i>world</i></p>") == "Hello world"
    assert strip_html(None) == ""


def test_unknown_type_raises() -> None:
    with pytest.raises(ValueError):
        _fetcher().fetch(FeedSource(name="x", type="atom", url="https://x"))
