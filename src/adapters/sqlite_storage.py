"""SQLite storage adapter.

Implements the core StateStorePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional

DEFAULT_STATE_KEY = "borderadar_state"


class SQLiteStateStore:
    """Thin SQLite wrapper that satisfies the StateStorePort contract."""

    def __init__(self, db_path: str, state_key: str = DEFAULT_STATE_KEY) -> None:
        self._db_path = db_path
        self._state_key = state_key

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the state table if it does not exist.

        Fields:
        - state_key: name of the blob (PRIMARY KEY), one row per deployment
        - payload: JSON document {"lastIds": [...], "events": [...]}
        - updated_at: timestamp of the last write
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS state_blobs (
                    state_key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def load(self) -> Optional[dict]:
        """Return the stored blob, or None if nothing was saved yet."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM state_blobs WHERE state_key = ?",
                (self._state_key,),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["payload"])

    def save(self, blob: dict) -> None:
        """Upsert the whole blob."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO state_blobs (state_key, payload, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(state_key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (self._state_key, json.dumps(blob, ensure_ascii=False), now.isoformat()),
            )
