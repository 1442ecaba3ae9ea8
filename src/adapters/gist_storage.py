"""GitHub Gist storage adapter.

Stores the state blob as a JSON file inside a private gist, which lets a
stateless scheduled deployment keep its history without a database.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)

GIST_API = "https://api.github.com/gists"
STATE_FILENAME = "borderadar_state.json"
USER_AGENT = "BorderadarBot"


class GistStateStore:
    """StateStorePort backed by one file of a GitHub gist."""

    def __init__(
        self,
        token: Optional[str],
        gist_id: Optional[str],
        filename: str = STATE_FILENAME,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._token = token
        self._gist_id = gist_id
        self._filename = filename
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self._token and self._gist_id)

    def _url(self) -> str:
        return f"{GIST_API}/{self._gist_id}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"token {self._token}",
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
        }

    def load(self) -> Optional[dict]:
        if not self.enabled:
            LOGGER.warning("Gist credentials missing; state is not persisted")
            return None
        resp = self._session.get(self._url(), headers=self._headers(), timeout=self._timeout)
        resp.raise_for_status()
        files = (resp.json() or {}).get("files") or {}
        file_entry = files.get(self._filename)
        if not file_entry:
            return None
        return json.loads(file_entry.get("content") or "null")

    def save(self, blob: dict) -> None:
        if not self.enabled:
            return
        payload = {"files": {self._filename: {"content": json.dumps(blob, indent=2, ensure_ascii=False)}}}
        resp = self._session.patch(
            self._url(),
            headers=self._headers(),
            json=payload,
            timeout=self._timeout,
        )
        resp.raise_for_status()
