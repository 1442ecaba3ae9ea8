from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from adapters.notification_formatting import clip_snippet, format_event, format_utc
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_notifier import TelegramSavedMessagesNotifier
from core.config import NotificationConfig, Sector
from core.models import VerifiedEvent

CONFIG = NotificationConfig(snippet_chars=400)
SURIN = Sector(id="sector_surin", name="Surin / Sisaket / Buriram", lat=14.8, lon=103.5)


def _event(*, sector: Optional[Sector] = SURIN, snippet: str = "Shells landed <near> the village") -> VerifiedEvent:
    return VerifiedEvent(
        id="abc",
        title="Artillery fire reported along Surin border",
        link="https://ap.example/story?a=1&b=2",
        published_at=datetime(2024, 7, 24, 6, 5, 9, tzinfo=timezone.utc),
        sources=("AP", "Reuters"),
        snippet=snippet,
        sector=sector,
        severity=9,
        fetched_at=datetime(2024, 7, 24, 9, 0, tzinfo=timezone.utc),
    )


def test_format_utc_is_rfc1123() -> None:
    assert format_utc(_event()) == "Wed, 24 Jul 2024 06:05:09 GMT"


def test_html_contains_all_fields() -> None:
    text = format_event(_event(), CONFIG, mode="html")
    assert "<b>Time:</b> Wed, 24 Jul 2024 06:05:09 GMT" in text
    assert "<b>Severity:</b> 9 / 10" in text
    assert "<b>Sources:</b> AP, Reuters" in text
    assert "<b>Artillery fire reported along Surin border</b>" in text
    assert "Shells landed &lt;near&gt; the village" in text
    assert "https://ap.example/story?a=1&amp;b=2" in text
    assert "Sector: Surin / Sisaket / Buriram" in text
    assert "https://www.google.com/maps/search/?api=1&amp;query=14.8,103.5" in text


def test_no_sector_lines_without_sector() -> None:
    text = format_event(_event(sector=None, snippet=""), CONFIG, mode="markdown")
    assert "Sector" not in text
    assert "Map:" not in text
    assert "**Severity:** 9 / 10" in text


def test_markdown_escapes_title() -> None:
    event = _event()
    event = VerifiedEvent(**{**event.__dict__, "title": "Clash *near* [Surin]"})
    text = format_event(event, CONFIG, mode="markdown")
    assert "Clash \\*near\\* \\[Surin]" in text
    assert "Map: https://www.google.com/maps/search/?api=1&query=14.8,103.5" in text


def test_clip_snippet() -> None:
    assert clip_snippet("short", 10) == "short"
    assert clip_snippet("a" * 20, 10) == "aaaaaaa..."


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        format_event(_event(), CONFIG, mode="plain")


def test_bot_notifier_posts_html_payload() -> None:
    notifier = TelegramBotNotifier(bot_token="123:abc", chat_id="-100", config=CONFIG)
    posted: list[dict] = []
    notifier._post = posted.append  # type: ignore[method-assign]

    asyncio.run(notifier.send(_event()))

    assert posted[0]["chat_id"] == "-100"
    assert posted[0]["parse_mode"] == "HTML"
    assert "Severity" in posted[0]["text"]


def test_saved_messages_notifier_sends_markdown_to_me() -> None:
    class FakeClient:
        def __init__(self) -> None:
            self.calls: list[tuple] = []

        async def send_message(self, entity, message, parse_mode=None) -> None:
            self.calls.append((entity, message, parse_mode))

    client = FakeClient()
    asyncio.run(TelegramSavedMessagesNotifier(client, CONFIG).send(_event()))
    entity, message, parse_mode = client.calls[0]
    assert entity == "me"
    assert parse_mode == "Markdown"
    assert "**Sources:** AP, Reuters" in message
