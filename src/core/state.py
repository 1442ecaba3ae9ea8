"""Persisted state reconciliation.

The state blob is the single durable resource of a deployment. It is read
once at run start and rewritten after every delivered event. There is no
locking: only one run may touch a given store at a time.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Optional

from core.config import RetentionConfig, Sector
from core.dedup import dedupe_batch, filter_unseen
from core.models import PersistedState, VerifiedEvent
from core.ports import StateStorePort

LOGGER = logging.getLogger(__name__)


def _format_dt(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_dt(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (with optional trailing Z) into aware UTC."""

    if isinstance(value, datetime):
        parsed = value
    elif value:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_published(value: Any) -> Optional[datetime]:
    """Parse RFC 822 (RSS) or ISO 8601 (Atom/JSON) timestamps as aware UTC."""

    if not value:
        return None
    if isinstance(value, datetime):
        return parse_dt(value)
    text = str(value).strip()
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return parse_dt(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def event_to_dict(event: VerifiedEvent) -> dict:
    sector = None
    if event.sector is not None:
        sector = {
            "id": event.sector.id,
            "name": event.sector.name,
            "lat": event.sector.lat,
            "lon": event.sector.lon,
        }
    return {
        "id": event.id,
        "title": event.title,
        "link": event.link,
        "pubDate": _format_dt(event.published_at),
        "sources": list(event.sources),
        "snippet": event.snippet,
        "sector": sector,
        "severity": event.severity,
        "fetchedAt": _format_dt(event.fetched_at),
    }


def event_from_dict(raw: dict) -> VerifiedEvent:
    raw_sector = raw.get("sector")
    sector = None
    if raw_sector:
        sector = Sector(
            id=str(raw_sector["id"]),
            name=str(raw_sector["name"]),
            lat=float(raw_sector["lat"]),
            lon=float(raw_sector["lon"]),
        )
    published_at = parse_published(raw.get("pubDate") or raw.get("publishedAt"))
    fetched_at = parse_published(raw.get("fetchedAt"))
    if published_at is None or fetched_at is None:
        raise ValueError(f"event {raw.get('id')!r} has no valid timestamps")
    return VerifiedEvent(
        id=str(raw["id"]),
        title=str(raw.get("title") or ""),
        link=str(raw.get("link") or ""),
        published_at=published_at,
        sources=tuple(raw.get("sources") or ()),
        snippet=str(raw.get("snippet") or ""),
        sector=sector,
        severity=int(raw.get("severity") or 0),
        fetched_at=fetched_at,
    )


def state_to_blob(state: PersistedState) -> dict:
    return {
        "lastIds": list(state.seen_fingerprints),
        "events": [event_to_dict(event) for event in state.recent_events],
    }


def state_from_blob(blob: Optional[dict]) -> PersistedState:
    """Build state from a stored blob; raises ValueError on a bad shape.

    Undecodable entries in ``events`` are logged and skipped; ``lastIds``
    is always kept.
    """

    if not blob:
        return PersistedState()
    if not isinstance(blob, dict):
        raise ValueError("state blob must be an object")

    last_ids = blob.get("lastIds") or []
    raw_events = blob.get("events") or []
    if not isinstance(last_ids, list) or not isinstance(raw_events, list):
        raise ValueError("state blob fields lastIds/events must be lists")

    events: List[VerifiedEvent] = []
    for index, raw in enumerate(raw_events):
        try:
            events.append(event_from_dict(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Skipping stored event #%s: %s", index, exc)
    # Older blobs may carry repeats; keep the first occurrence only.
    seen = list(dict.fromkeys(str(fingerprint) for fingerprint in last_ids))
    return PersistedState(seen_fingerprints=seen, recent_events=events)


def read_latest(store: StateStorePort) -> dict:
    """Return the persisted events exactly as stored, without filtering."""

    try:
        blob = store.load() or {}
    except Exception:
        LOGGER.exception("Failed to load state for read")
        return {"events": []}
    events = blob.get("events") if isinstance(blob, dict) else None
    return {"events": events if isinstance(events, list) else []}


class StateReconciler:
    """Decides which verified events are new and records the delivered ones."""

    def __init__(self, store: StateStorePort, retention: RetentionConfig) -> None:
        self._store = store
        self._retention = retention
        self._state = PersistedState()
        self._seen: set[str] = set()

    def load(self) -> PersistedState:
        """Load state, falling back to an empty one on any failure.

        An empty fallback may re-notify events sent by earlier runs.
        """

        try:
            self._state = state_from_blob(self._store.load())
        except Exception:
            LOGGER.exception("State load failed, starting from empty state")
            self._state = PersistedState()
        self._seen = set(self._state.seen_fingerprints)
        LOGGER.info(
            "Loaded state: %s fingerprints, %s recent events",
            len(self._state.seen_fingerprints),
            len(self._state.recent_events),
        )
        return self._state

    def is_seen(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def select(self, candidates: Iterable[VerifiedEvent]) -> List[VerifiedEvent]:
        """Cross-run filter first, then in-batch title dedup."""

        unseen = filter_unseen(candidates, self._seen)
        return dedupe_batch(unseen)

    def record_delivery(self, event: VerifiedEvent) -> None:
        """Mark an event as sent and persist the state immediately."""

        if event.id not in self._seen:
            self._state.seen_fingerprints.append(event.id)
            self._seen.add(event.id)
        self._state.recent_events.insert(0, event)
        self._apply_retention()
        self.persist()

    def persist(self) -> None:
        """Write the state blob; failures are logged, never raised."""

        try:
            self._store.save(state_to_blob(self._state))
        except Exception:
            LOGGER.exception("State save failed; events may be re-sent next run")

    def _apply_retention(self) -> None:
        del self._state.recent_events[self._retention.max_events:]
        max_seen = self._retention.max_seen_ids
        if max_seen is not None and len(self._state.seen_fingerprints) > max_seen:
            dropped = self._state.seen_fingerprints[:-max_seen]
            del self._state.seen_fingerprints[:-max_seen]
            self._seen.difference_update(dropped)
