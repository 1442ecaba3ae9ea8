"""Deduplication helpers (core domain)."""

from __future__ import annotations

import hashlib
from typing import Collection, Iterable, List

from core.grouping import similar
from core.models import VerifiedEvent


def compute_fingerprint(title: str, link: str) -> str:
    """Return the stable dedup key of an event.

    MD5 over the raw title and link concatenation keeps fingerprints
    compatible with state blobs written by earlier deployments.
    """

    payload = f"{title}{link}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def filter_unseen(events: Iterable[VerifiedEvent], seen: Collection[str]) -> List[VerifiedEvent]:
    """Drop events already reported by a previous run."""

    return [event for event in events if event.id not in seen]


def dedupe_batch(events: Iterable[VerifiedEvent]) -> List[VerifiedEvent]:
    """Drop events whose title is similar to one accepted earlier this run."""

    accepted: List[VerifiedEvent] = []
    for event in events:
        if any(similar(kept.title, event.title) for kept in accepted):
            continue
        accepted.append(event)
    return accepted
