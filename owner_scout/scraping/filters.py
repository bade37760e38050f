"""
Candidate filter predicates over enrichment records.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from owner_scout.domain.owners import EnrichmentRecord, FilterDecision, FilterThresholds

REASON_TOO_MANY_TRADE_ADS = "too many trade ads"
REASON_STALE = "stale"
REASON_VALUE_TOO_HIGH = "value too high"


@dataclass(frozen=True)
class FilterCheck:
    """
    Rejects when `rejects(record, thresholds)` is true.
    """

    reason: str
    rejects: Callable[[EnrichmentRecord, FilterThresholds], bool]


DEFAULT_CHECKS: tuple[FilterCheck, ...] = (
    FilterCheck(
        reason=REASON_TOO_MANY_TRADE_ADS,
        rejects=lambda record, limits: record.trade_ad_count > limits.trade_ad_ceiling,
    ),
    FilterCheck(
        reason=REASON_STALE,
        rejects=lambda record, limits: record.last_seen_days > limits.stale_days_ceiling,
    ),
    FilterCheck(
        reason=REASON_VALUE_TOO_HIGH,
        rejects=lambda record, limits: record.recent_value >= limits.value_ceiling,
    ),
)


def evaluate(record: EnrichmentRecord, thresholds: FilterThresholds) -> FilterDecision:
    """
    Apply the checks in order; the first failing check names the reason.
    """

    for check in DEFAULT_CHECKS:
        if check.rejects(record, thresholds):
            return FilterDecision.reject(check.reason)
    return FilterDecision.accept()


class FilterChain:
    """
    Thresholds bound once at startup.
    """

    def __init__(self, thresholds: FilterThresholds) -> None:
        self.thresholds = thresholds

    def evaluate(self, record: EnrichmentRecord) -> FilterDecision:
        return evaluate(record, self.thresholds)
