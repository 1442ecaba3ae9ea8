from __future__ import annotations

from datetime import datetime, timezone

from core.grouping import group_by_similarity, similar
from core.models import RawItem


def _item(source: str, title: str, body: str = "") -> RawItem:
    return RawItem(
        source=source,
        title=title,
        link=f"https://{source.lower()}.example/{abs(hash(title))}",
        published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        body=body,
    )


def test_reordered_title_is_similar() -> None:
    assert similar("Clash erupts near Preah Vihear border", "Border clash erupts near Preah Vihear")


def test_unrelated_title_is_not_similar() -> None:
    assert not similar("Clash erupts near Preah Vihear border", "Stock market rises on tech rally")


def test_exact_match_after_normalization() -> None:
    assert similar("Border  CLASH", "border clash")


def test_empty_titles_are_never_similar() -> None:
    assert not similar("", "")
    assert not similar("Border clash", "")


def test_whitespace_only_titles_are_never_similar() -> None:
    assert not similar("  ", "\t")
    assert not similar(" \n ", " ")


def test_ratio_must_strictly_exceed_half() -> None:
    # 2 shared tokens out of 4: exactly 0.5 is not enough.
    assert not similar("a b c d", "a b e f")
    assert similar("a b c d", "a b c f")


def test_similarity_is_not_transitive() -> None:
    a = "a b c d"
    b = "a b c e"
    c = "a b e f"
    assert similar(a, b)
    assert similar(b, c)
    assert not similar(a, c)


def test_first_fit_grouping_keeps_non_transitive_chain_apart() -> None:
    items = [
        _item("Reuters", "a b c d"),
        _item("AP", "a b e f"),
        _item("BBC", "a b c e"),
    ]
    groups = group_by_similarity(items)
    # "a b c e" matches the first prototype and is never compared further.
    assert [group.prototype_title for group in groups] == ["a b c d", "a b e f"]
    assert [len(group.items) for group in groups] == [2, 1]


def test_item_joins_group_when_body_matches_prototype() -> None:
    items = [
        _item("Reuters", "Clash erupts near Preah Vihear border"),
        _item("AP", "Breaking", body="Border clash erupts near Preah Vihear"),
    ]
    groups = group_by_similarity(items)
    assert len(groups) == 1
    assert [item.source for item in groups[0].items] == ["Reuters", "AP"]


def test_grouping_is_deterministic() -> None:
    items = [
        _item("Reuters", "Clash erupts near Preah Vihear border"),
        _item("AP", "Stock market rises on tech rally"),
        _item("BBC", "Border clash erupts near Preah Vihear"),
        _item("Al Jazeera", "Drone strike reported in Battambang"),
    ]
    first = group_by_similarity(items)
    second = group_by_similarity(list(items))
    assert [(g.prototype_title, g.items) for g in first] == [(g.prototype_title, g.items) for g in second]
    assert len(first) == 3
