"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any feed, storage, or delivery specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from core.config import Sector


@dataclass(frozen=True)
class RawItem:
    """A single feed entry as returned by the fetch adapter."""

    source: str
    title: str
    link: str
    published_at: datetime
    body: str = ""


@dataclass
class CandidateGroup:
    """Items believed to describe the same event, prior to verification."""

    prototype_title: str
    items: List[RawItem] = field(default_factory=list)

    def add(self, item: RawItem) -> None:
        self.items.append(item)


@dataclass(frozen=True)
class VerifiedEvent:
    """An event that passed the trust policy and is ready for dedup."""

    id: str
    title: str
    link: str
    published_at: datetime
    sources: Tuple[str, ...]
    snippet: str
    sector: Optional[Sector]
    severity: int
    fetched_at: datetime


@dataclass
class PersistedState:
    """Durable run-to-run state, owned by the state reconciler."""

    seen_fingerprints: List[str] = field(default_factory=list)
    recent_events: List[VerifiedEvent] = field(default_factory=list)


@dataclass(frozen=True)
class RunResult:
    """Summary returned to whatever triggered the pipeline run."""

    ok: bool
    sent: int = 0
    error: Optional[str] = None
    fetched: int = 0
    relevant: int = 0
    groups: int = 0
    verified: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "error": self.error}
        return {
            "ok": True,
            "sent": self.sent,
            "fetched": self.fetched,
            "relevant": self.relevant,
            "groups": self.groups,
            "verified": self.verified,
            "failed": self.failed,
        }
