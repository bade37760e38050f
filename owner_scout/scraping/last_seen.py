"""
Relative "last seen online" label parsing.
"""

from __future__ import annotations

import re

from owner_scout.domain.owners import UNKNOWN_LAST_SEEN_DAYS

_SAME_DAY_MARKERS = ("second", "minute", "hour", "just now")
_DAYS_PATTERN = re.compile(r"(\d+)\s*day")


def parse_last_online_days(text: str | None) -> int:
    """
    Map a label such as "3 days ago" to a whole day count.

    Same-day labels give 0 and anything unrecognised gives
    `UNKNOWN_LAST_SEEN_DAYS`, which is staler than any real ceiling.
    """

    lowered = (text or "").lower()
    if any(marker in lowered for marker in _SAME_DAY_MARKERS):
        return 0
    match = _DAYS_PATTERN.search(lowered)
    if match:
        return int(match.group(1))
    return UNKNOWN_LAST_SEEN_DAYS
