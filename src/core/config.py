"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

FEED_TYPES = ("rss", "json")

DEFAULT_AUTHORITATIVE_PATTERNS = ("mfa", "gov", "ministr")


@dataclass(frozen=True)
class FeedSource:
    """A single feed the fetch adapter knows how to read."""

    name: str
    type: str
    url: str


@dataclass(frozen=True)
class Sector:
    """Coarse geographic region used for geotagging events."""

    id: str
    name: str
    lat: float
    lon: float
    keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PipelineConfig:
    """Keyword sets and thresholds injected into the correlation engine."""

    relevant_keywords: Tuple[str, ...]
    severe_keywords: Tuple[str, ...]
    sectors: Tuple[Sector, ...] = ()
    authoritative_patterns: Tuple[str, ...] = DEFAULT_AUTHORITATIVE_PATTERNS
    sector_min_match: int = 1


@dataclass(frozen=True)
class RetentionConfig:
    """Bounds applied to persisted state."""

    max_events: int = 200
    max_seen_ids: Optional[int] = 5000


@dataclass(frozen=True)
class NotificationConfig:
    """Notification formatting settings consumed by notifier adapters."""

    snippet_chars: int
    map_url_template: str = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"


def _lowered(values: Iterable[Any]) -> Tuple[str, ...]:
    return tuple(str(value).lower() for value in values if str(value).strip())


def build_sources(raw_sources: Any) -> List[FeedSource]:
    """Validate raw source entries and return FeedSource objects.

    Disabled entries are skipped. Anything that is not a list of objects with
    a name and url is rejected.
    """

    if not isinstance(raw_sources, list):
        raise ValueError("sources must be a list")

    sources: List[FeedSource] = []
    for index, entry in enumerate(raw_sources):
        if not isinstance(entry, dict):
            raise ValueError(f"source #{index} must be an object")
        if not entry.get("enabled", True):
            continue
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            raise ValueError(f"source #{index} needs both name and url")
        feed_type = str(entry.get("type") or "rss").strip().lower()
        if feed_type not in FEED_TYPES:
            raise ValueError(f"source {name!r} has unsupported type {feed_type!r}")
        sources.append(FeedSource(name=name, type=feed_type, url=url))
    return sources


def build_sectors(raw_sectors: Any) -> List[Sector]:
    """Build sectors in configuration order (the order is their priority)."""

    if not isinstance(raw_sectors, list):
        raise ValueError("sectors must be a list")

    sectors: List[Sector] = []
    for entry in raw_sectors:
        try:
            sectors.append(
                Sector(
                    id=str(entry["id"]),
                    name=str(entry["name"]),
                    lat=float(entry["lat"]),
                    lon=float(entry["lon"]),
                    keywords=_lowered(entry.get("keywords", [])),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid sector entry: {entry!r}") from exc
    return sectors


def build_pipeline_config(raw_config: dict) -> PipelineConfig:
    """Assemble the engine configuration from the flat config.json schema."""

    keywords = raw_config.get("keywords", {})
    min_match = int(raw_config.get("sector_min_match", 1))
    if min_match < 1:
        raise ValueError("sector_min_match must be at least 1")

    return PipelineConfig(
        relevant_keywords=_lowered(keywords.get("relevant", [])),
        severe_keywords=_lowered(keywords.get("severe", [])),
        sectors=tuple(build_sectors(raw_config.get("sectors", []))),
        authoritative_patterns=_lowered(
            keywords.get("authoritative", DEFAULT_AUTHORITATIVE_PATTERNS)
        ),
        sector_min_match=min_match,
    )
