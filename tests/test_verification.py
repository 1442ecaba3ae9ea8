from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

from core.config import PipelineConfig, Sector
from core.dedup import compute_fingerprint
from core.models import CandidateGroup, RawItem
from core.verification import (
    detect_sector,
    has_authoritative,
    pick_representative,
    score_severity,
    verify_group,
)

BASE = datetime(2024, 7, 24, 6, 0, tzinfo=timezone.utc)
FETCHED = datetime(2024, 7, 24, 9, 0, tzinfo=timezone.utc)

RELEVANT = ("border", "clash", "artillery", "fired", "casualties", "strike", "air strike", "airstrike")
SEVERE = ("killed", "casualties", "artillery", "air strike", "airstrike", "shelling")

PREAH = Sector(id="preah", name="Preah Vihear / Oddar Meanchey", lat=13.833, lon=103.5, keywords=("preah vihear", "preah"))
SURIN = Sector(id="surin", name="Surin / Sisaket / Buriram", lat=14.8, lon=103.5, keywords=("surin", "sisaket", "buriram"))

CONFIG = PipelineConfig(relevant_keywords=RELEVANT, severe_keywords=SEVERE, sectors=(PREAH, SURIN))


def _item(source: str, title: str, minutes: int = 0, body: str = "", link: str = "") -> RawItem:
    return RawItem(
        source=source,
        title=title,
        link=link or f"https://{source.lower().replace(' ', '')}.example/story",
        published_at=BASE + timedelta(minutes=minutes),
        body=body,
    )


def test_single_non_authoritative_source_is_rejected() -> None:
    group = CandidateGroup(
        prototype_title="Border clash",
        items=[_item("Reuters", "Border clash"), _item("Reuters", "Border clash again", minutes=5)],
    )
    assert verify_group(group, CONFIG, FETCHED) is None


def test_two_distinct_sources_are_verified() -> None:
    group = CandidateGroup(
        prototype_title="Border clash",
        items=[_item("Reuters", "Border clash"), _item("AP", "Border clash")],
    )
    event = verify_group(group, CONFIG, FETCHED)
    assert event is not None
    assert event.sources == ("Reuters", "AP")
    assert event.fetched_at == FETCHED


def test_single_authoritative_source_is_verified() -> None:
    group = CandidateGroup(prototype_title="Border clash", items=[_item("Thailand MFA", "Border clash")])
    event = verify_group(group, CONFIG, FETCHED)
    assert event is not None
    assert event.sources == ("Thailand MFA",)


def test_authoritative_patterns_are_case_insensitive() -> None:
    patterns = ("mfa", "gov", "ministr")
    assert has_authoritative(["Royal Thai GOVERNMENT"], patterns)
    assert has_authoritative(["Ministry of Defence"], patterns)
    assert not has_authoritative(["Reuters", "BBC"], patterns)


def test_representative_is_earliest_with_stable_ties() -> None:
    later = _item("Reuters", "Later", minutes=30)
    first_tie = _item("AP", "Tie one", minutes=0)
    second_tie = _item("BBC", "Tie two", minutes=0)
    assert pick_representative([later, first_tie, second_tie]) is first_tie


def test_event_is_built_from_representative() -> None:
    early = _item("AP", "Border clash at dawn", minutes=-10, body="Shots fired", link="https://ap.example/1")
    late = _item("Reuters", "Border clash at dawn", minutes=20, link="https://reuters.example/2")
    group = CandidateGroup(prototype_title=late.title, items=[late, early])
    event = verify_group(group, CONFIG, FETCHED)
    assert event is not None
    assert event.id == compute_fingerprint("Border clash at dawn", "https://ap.example/1")
    assert event.link == "https://ap.example/1"
    assert event.snippet == "Shots fired"
    assert event.published_at == early.published_at
    # Distinct sources keep first-seen order of the group, not of the representative.
    assert event.sources == ("Reuters", "AP")


def test_fingerprint_is_md5_of_title_and_link() -> None:
    expected = hashlib.md5("Titlehttps://x".encode("utf-8")).hexdigest()
    assert compute_fingerprint("Title", "https://x") == expected
    assert compute_fingerprint("Title", "https://x") != compute_fingerprint("Title", "https://y")


def test_severity_counts_both_sets() -> None:
    # artillery: severe + relevant (3 + 1), border: relevant (1)
    assert score_severity("Artillery near the border", SEVERE, RELEVANT) == 5


def test_severity_is_clamped() -> None:
    text = "killed casualties artillery air strike airstrike shelling border clash"
    assert score_severity(text, SEVERE, RELEVANT) == 10
    assert score_severity("", SEVERE, RELEVANT) == 0
    assert score_severity("quiet day", SEVERE, RELEVANT) == 0


def test_severity_always_within_bounds() -> None:
    samples = [
        "",
        "border",
        "artillery shelling killed casualties",
        "AIRSTRIKE air strike " * 10,
        "nothing relevant here",
    ]
    for text in samples:
        assert 0 <= score_severity(text, SEVERE, RELEVANT) <= 10


def test_earlier_configured_sector_wins() -> None:
    text = "shelling reported between preah vihear and surin"
    assert detect_sector(text, (PREAH, SURIN)) is PREAH
    assert detect_sector(text, (SURIN, PREAH)) is SURIN


def test_sector_min_match_threshold() -> None:
    text = "surin border"
    assert detect_sector(text, (PREAH, SURIN), min_match=2) is None
    assert detect_sector("surin and buriram", (PREAH, SURIN), min_match=2) is SURIN


def test_no_sector_when_nothing_matches() -> None:
    assert detect_sector("clash in the capital", (PREAH, SURIN)) is None
