"""Binary in-domain gate applied before clustering."""

from __future__ import annotations

from typing import Iterable, List

from core.models import RawItem
from core.text import contains_any


def is_relevant(item: RawItem, keywords: Iterable[str]) -> bool:
    """True when title or body mentions at least one relevance keyword."""

    return contains_any(f"{item.title} {item.body}", keywords)


def filter_relevant(items: Iterable[RawItem], keywords: Iterable[str]) -> List[RawItem]:
    keywords = tuple(keywords)
    return [item for item in items if is_relevant(item, keywords)]
