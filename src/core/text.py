"""Text normalization and keyword matching primitives (core domain)."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Set


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize(text: Optional[str]) -> str:
    """Collapse whitespace, trim and lowercase."""

    return _collapse_whitespace(text or "").lower()


def keyword_hits(text: str, keywords: Iterable[str]) -> List[str]:
    """Return the keywords found as substrings of the normalized text.

    Matching is plain substring containment: "fire" also hits "fired" and
    "ceasefire". That is the contract, not a bug.
    """

    normalized = normalize(text)
    return [keyword for keyword in keywords if keyword and keyword in normalized]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    normalized = normalize(text)
    return any(keyword and keyword in normalized for keyword in keywords)


def tokens(text: str) -> Set[str]:
    """Whitespace tokens of the normalized text. Punctuation stays attached."""

    return set(normalize(text).split(" "))
