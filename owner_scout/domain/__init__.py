"""
Domain layer models.
"""

from owner_scout.domain.owners import (
    UNKNOWN_LAST_SEEN_DAYS,
    CandidateIdentity,
    EnrichmentRecord,
    FilterDecision,
    FilterThresholds,
    ItemScrapeSummary,
    LookupOutcome,
    LookupResult,
)
from owner_scout.domain.run_state import RunSnapshot, RunState

__all__ = [
    "UNKNOWN_LAST_SEEN_DAYS",
    "CandidateIdentity",
    "EnrichmentRecord",
    "FilterDecision",
    "FilterThresholds",
    "ItemScrapeSummary",
    "LookupOutcome",
    "LookupResult",
    "RunSnapshot",
    "RunState",
]
