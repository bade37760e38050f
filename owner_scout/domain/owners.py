"""
owner_scout/domain/owners.py

Domain models for owner traversal, enrichment and filtering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Day count used when a last-seen label cannot be interpreted.
UNKNOWN_LAST_SEEN_DAYS = 999


@dataclass(frozen=True)
class CandidateIdentity:
    """
    One owner row read from an item's owner table.
    """

    display_name: str
    profile_url: str


@dataclass(frozen=True)
class EnrichmentRecord:
    """
    Activity and value fields read from a candidate's profile page.
    """

    trade_ad_count: int = 0
    resale_value: int = 0
    recent_value: int = 0
    last_seen_text: str = ""
    last_seen_days: int = UNKNOWN_LAST_SEEN_DAYS

    @classmethod
    def fail_safe(cls) -> "EnrichmentRecord":
        """
        Neutral record used when the profile could not be loaded at all.
        """

        return cls(last_seen_text="Unknown", last_seen_days=UNKNOWN_LAST_SEEN_DAYS)


@dataclass(frozen=True)
class FilterThresholds:
    """
    Ceilings a candidate must stay under to be looked up.
    """

    trade_ad_ceiling: int = 500
    stale_days_ceiling: int = 4
    value_ceiling: int = 6_000_000


@dataclass(frozen=True)
class FilterDecision:
    accepted: bool
    reason: str | None = None

    @classmethod
    def accept(cls) -> "FilterDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "FilterDecision":
        return cls(accepted=False, reason=reason)


class LookupOutcome(str, Enum):
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class LookupResult:
    """
    Resolution of one identity lookup request.
    """

    subject: str
    outcome: LookupOutcome
    identity: str | None = None

    @property
    def matched(self) -> bool:
        return self.outcome is LookupOutcome.MATCHED and bool(self.identity)


@dataclass(frozen=True)
class ItemScrapeSummary:
    """
    Summary for one catalog item run.
    """

    item_id: str
    item_name: str
    total_pages: int
    candidates_evaluated: int
    accepted: int
    matched: int
    attempts: int
    status: str
    errors: list[str] = field(default_factory=list)
