from __future__ import annotations

import pytest

from owner_scout.domain.owners import UNKNOWN_LAST_SEEN_DAYS
from owner_scout.scraping.last_seen import parse_last_online_days


@pytest.mark.parametrize(
    "text",
    [
        "12 seconds ago",
        "a minute ago",
        "5 Minutes ago",
        "3 HOURS AGO",
        "Just Now",
        "1 hour ago",
    ],
)
def test_same_day_labels_are_zero(text: str) -> None:
    assert parse_last_online_days(text) == 0


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1 day ago", 1),
        ("4 days ago", 4),
        ("17days ago", 17),
        ("Last online 120 Days ago", 120),
    ],
)
def test_day_labels_return_day_count(text: str, expected: int) -> None:
    assert parse_last_online_days(text) == expected


@pytest.mark.parametrize("text", ["", "Unknown", "2 weeks ago", "a day ago", "Online", None])
def test_unrecognised_labels_are_stale(text: str | None) -> None:
    assert parse_last_online_days(text) == UNKNOWN_LAST_SEEN_DAYS


def test_same_day_marker_wins_over_day_count() -> None:
    assert parse_last_online_days("1 day 3 hours ago") == 0


def test_unknown_sentinel_exceeds_realistic_ceilings() -> None:
    assert UNKNOWN_LAST_SEEN_DAYS > 365
