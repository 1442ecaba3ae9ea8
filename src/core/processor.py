"""Core event correlation pipeline.

This module is integration-agnostic. It only relies on ports for feeds,
state storage and notifications. One run follows a strict order:
1) Load persisted state
2) Fetch every source (concurrently, collected in declaration order)
3) Relevance filter
4) Group by title similarity
5) Verify, score and geotag each group
6) Drop events seen in earlier runs, then in-batch near duplicates
7) Deliver sequentially, marking each event seen only once it was delivered
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List

from core.config import FeedSource, PipelineConfig, RetentionConfig
from core.grouping import group_by_similarity
from core.models import RawItem, RunResult
from core.ports import FeedPort, NotifierPort, StateStorePort
from core.relevance import filter_relevant
from core.state import StateReconciler
from core.verification import verify_groups

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventPipeline:
    """Orchestrates fetch, correlation, dedup, delivery and persistence."""

    def __init__(
        self,
        sources: Iterable[FeedSource],
        config: PipelineConfig,
        feeds: FeedPort,
        store: StateStorePort,
        notifier: NotifierPort,
        retention: RetentionConfig = RetentionConfig(),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._sources = list(sources)
        self._config = config
        self._feeds = feeds
        self._store = store
        self._notifier = notifier
        self._retention = retention
        self._clock = clock

    async def run(self) -> RunResult:
        """Execute one run. Never raises; failures come back as ok=False."""

        try:
            return await self._run()
        except Exception as exc:
            LOGGER.exception("Fatal error during pipeline run")
            return RunResult(ok=False, error=str(exc) or exc.__class__.__name__)

    async def _run(self) -> RunResult:
        reconciler = StateReconciler(self._store, self._retention)
        reconciler.load()

        items = await self._fetch_all()
        relevant = filter_relevant(items, self._config.relevant_keywords)
        groups = group_by_similarity(relevant)
        verified = verify_groups(groups, self._config, self._clock())
        to_send = reconciler.select(verified)
        LOGGER.info(
            "Run stats: items=%s relevant=%s groups=%s verified=%s new=%s",
            len(items),
            len(relevant),
            len(groups),
            len(verified),
            len(to_send),
        )

        sent = 0
        failed = 0
        # Deliveries stay sequential so each state write matches one delivery.
        for event in to_send:
            try:
                await self._notifier.send(event)
            except Exception:
                failed += 1
                LOGGER.exception("Delivery failed for %r", event.title)
                continue
            reconciler.record_delivery(event)
            sent += 1
            LOGGER.info("Event sent: %s (severity %s)", event.title, event.severity)

        return RunResult(
            ok=True,
            sent=sent,
            fetched=len(items),
            relevant=len(relevant),
            groups=len(groups),
            verified=len(verified),
            failed=failed,
        )

    async def _fetch_all(self) -> List[RawItem]:
        # gather() keeps result order aligned with source order, which the
        # first-fit grouper depends on.
        batches = await asyncio.gather(*(self._fetch_source(source) for source in self._sources))
        return [item for batch in batches for item in batch]

    async def _fetch_source(self, source: FeedSource) -> List[RawItem]:
        try:
            items = await asyncio.to_thread(self._feeds.fetch, source)
        except Exception as exc:
            LOGGER.warning("Feed error for %s: %s", source.name, exc)
            return []
        LOGGER.debug("Fetched %s items from %s", len(items), source.name)
        return list(items)
