"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from datetime import timezone

from core.config import NotificationConfig
from core.models import VerifiedEvent

HEADER = "Borderadar: Verified Update"
DIVIDER = "──────────────"


def format_utc(event: VerifiedEvent) -> str:
    """Render the publish time as an RFC 1123 style UTC string."""

    when = event.published_at
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT")


def clip_snippet(snippet: str, limit: int) -> str:
    snippet = (snippet or "").strip()
    if len(snippet) <= limit:
        return snippet
    return snippet[: max(limit - 3, 0)].rstrip() + "..."


def map_link(event: VerifiedEvent, config: NotificationConfig) -> str:
    sector = event.sector
    if sector is None:
        return ""
    return config.map_url_template.format(lat=sector.lat, lon=sector.lon)


def _format_markdown(event: VerifiedEvent, config: NotificationConfig) -> str:
    """Create the Markdown notification body used by Saved Messages."""

    def escape_md(value: str) -> str:
        for ch in r"*[`":
            value = value.replace(ch, f"\\{ch}")
        return value

    snippet = clip_snippet(event.snippet, config.snippet_chars)
    lines = [
        f"🔷 **{HEADER}**",
        f"**Time:** {format_utc(event)}",
        f"**Severity:** {event.severity} / 10",
        f"**Sources:** {escape_md(', '.join(event.sources))}",
        DIVIDER,
        "",
        f"**{escape_md(event.title)}**",
    ]
    if snippet:
        lines.append(escape_md(snippet))
    lines.extend(["", f"🔗 {event.link}"])
    if event.sector is not None:
        lines.append(f"📍 Sector: {escape_md(event.sector.name)}")
        lines.append(f"Map: {map_link(event, config)}")
    return "\n".join(lines)


def _format_html(event: VerifiedEvent, config: NotificationConfig) -> str:
    """Create the HTML notification body used by the Bot API adapter."""

    snippet = clip_snippet(event.snippet, config.snippet_chars)
    parts = [
        f"🔷 <b>{html.escape(HEADER)}</b>",
        f"<b>Time:</b> {html.escape(format_utc(event))}",
        f"<b>Severity:</b> {event.severity} / 10",
        f"<b>Sources:</b> {html.escape(', '.join(event.sources))}",
        "",
        f"<b>{html.escape(event.title)}</b>",
    ]
    if snippet:
        parts.append(html.escape(snippet))
    parts.extend(["", f"🔗 {html.escape(event.link)}"])
    if event.sector is not None:
        parts.append(f"📍 Sector: {html.escape(event.sector.name)}")
        parts.append(f"Map: {html.escape(map_link(event, config))}")
    return "\n".join(parts)


def format_event(event: VerifiedEvent, config: NotificationConfig, mode: str) -> str:
    """Return the notification formatted for the requested mode."""

    if mode == "markdown":
        return _format_markdown(event, config)
    if mode == "html":
        return _format_html(event, config)
    raise ValueError(f"Unsupported notification format: {mode}")
