"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for feed, storage and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.config import FeedSource
from core.models import RawItem, VerifiedEvent


class FeedPort(Protocol):
    """Feed retrieval for a single configured source."""

    def fetch(self, source: FeedSource) -> List[RawItem]:
        ...


class StateStorePort(Protocol):
    """Whole-blob get/put of the persisted state.

    load() returns None when nothing has been stored yet.
    """

    def load(self) -> Optional[dict]:
        ...

    def save(self, blob: dict) -> None:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline.

    send() raises on delivery failure; returning normally means delivered.
    """

    async def send(self, event: VerifiedEvent) -> None:
        ...
