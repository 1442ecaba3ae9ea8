"""Fuzzy clustering of raw items into candidate events (core domain).

The similarity predicate is a plain token-overlap ratio. It is symmetric but
not transitive: with A~B and B~C but not A~C, items can end up in two groups.
Grouping is first-fit in input order, so callers must pass items in a stable
order to get stable groups.
"""

from __future__ import annotations

from typing import Iterable, List

from core.models import CandidateGroup, RawItem
from core.text import normalize, tokens

SIMILARITY_THRESHOLD = 0.5


def similar(a: str, b: str) -> bool:
    """Return True when two titles likely describe the same event.

    Exact normalized matches short-circuit. Otherwise the number of shared
    whitespace tokens, divided by the size of the larger token set, must be
    strictly greater than 0.5.
    """

    left = normalize(a)
    right = normalize(b)
    if not left or not right:
        return False
    if left == right:
        return True

    left_tokens = tokens(left)
    right_tokens = tokens(right)
    common = len(left_tokens & right_tokens)
    ratio = common / max(len(left_tokens), len(right_tokens))
    return ratio > SIMILARITY_THRESHOLD


def _matches_group(group: CandidateGroup, item: RawItem) -> bool:
    # Bodies are checked too: some feeds put the headline in the summary.
    return similar(group.prototype_title, item.title) or similar(group.prototype_title, item.body)


def group_by_similarity(items: Iterable[RawItem]) -> List[CandidateGroup]:
    """Assign each item to the first similar group, or start a new one."""

    groups: List[CandidateGroup] = []
    for item in items:
        for group in groups:
            if _matches_group(group, item):
                group.add(item)
                break
        else:
            groups.append(CandidateGroup(prototype_title=item.title, items=[item]))
    return groups
