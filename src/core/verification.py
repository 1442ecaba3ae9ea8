"""Cross-source verification, severity scoring and sector tagging."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from core.config import PipelineConfig, Sector
from core.dedup import compute_fingerprint
from core.models import CandidateGroup, RawItem, VerifiedEvent
from core.text import keyword_hits

LOGGER = logging.getLogger(__name__)

MAX_SEVERITY = 10
SEVERE_WEIGHT = 3
RELEVANT_WEIGHT = 1


def distinct_sources(items: Iterable[RawItem]) -> Tuple[str, ...]:
    """Source names in first-seen order, without repeats."""

    return tuple(dict.fromkeys(item.source for item in items))


def has_authoritative(sources: Iterable[str], patterns: Iterable[str]) -> bool:
    """True if any source name looks like a government or ministry feed."""

    patterns = tuple(patterns)
    return any(pattern in source.lower() for source in sources for pattern in patterns)


def pick_representative(items: Sequence[RawItem]) -> RawItem:
    # min() keeps the first of equal keys, so ties resolve to input order.
    return min(items, key=lambda item: item.published_at)


def score_severity(text: str, severe_keywords: Iterable[str], relevant_keywords: Iterable[str]) -> int:
    """Keyword heuristic in [0, 10].

    Each severe keyword adds 3 and each relevance keyword adds 1. A keyword
    listed in both sets counts in both sums.
    """

    score = SEVERE_WEIGHT * len(keyword_hits(text, severe_keywords))
    score += RELEVANT_WEIGHT * len(keyword_hits(text, relevant_keywords))
    return max(0, min(score, MAX_SEVERITY))


def detect_sector(text: str, sectors: Iterable[Sector], min_match: int = 1) -> Optional[Sector]:
    """Return the first configured sector with enough keyword hits."""

    for sector in sectors:
        if len(keyword_hits(text, sector.keywords)) >= min_match:
            return sector
    return None


def verify_group(
    group: CandidateGroup,
    config: PipelineConfig,
    fetched_at: datetime,
) -> Optional[VerifiedEvent]:
    """Apply the trust rule to one group and build its event.

    A group passes when at least two distinct sources report it, or when one
    of them is authoritative. Single-source claims are always dropped.
    """

    sources = distinct_sources(group.items)
    if len(sources) < 2 and not has_authoritative(sources, config.authoritative_patterns):
        LOGGER.info("Skipped unverified group %r (sources: %s)", group.prototype_title, ", ".join(sources))
        return None

    representative = pick_representative(group.items)
    full_text = f"{representative.title} {representative.body}"
    return VerifiedEvent(
        id=compute_fingerprint(representative.title, representative.link),
        title=representative.title,
        link=representative.link,
        published_at=representative.published_at,
        sources=sources,
        snippet=representative.body,
        sector=detect_sector(full_text, config.sectors, config.sector_min_match),
        severity=score_severity(full_text, config.severe_keywords, config.relevant_keywords),
        fetched_at=fetched_at,
    )


def verify_groups(
    groups: Iterable[CandidateGroup],
    config: PipelineConfig,
    fetched_at: datetime,
) -> List[VerifiedEvent]:
    events: List[VerifiedEvent] = []
    for group in groups:
        event = verify_group(group, config, fetched_at)
        if event is not None:
            events.append(event)
    return events
