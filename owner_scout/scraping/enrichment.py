"""
Profile enrichment: trade-ad count, values and last-seen activity.
"""

from __future__ import annotations

import logging

from owner_scout.domain.owners import EnrichmentRecord
from owner_scout.scraping.browser import BrowserSessionError, Locator, SessionProvider
from owner_scout.scraping.config.models import ScoutScrapingSettings
from owner_scout.scraping.extraction import (
    ExtractionStrategy,
    FieldExtractor,
    in_range,
    parse_grouped_int,
    parse_int,
    parse_text,
)
from owner_scout.scraping.last_seen import parse_last_online_days
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

TRADE_AD_RANGE = in_range(1, 50_000)

TRADE_AD_STRATEGIES = (
    ExtractionStrategy(
        name="exact_stat_card",
        locator=Locator.css("span.card-title.mb-1.text-light.stat-data.text-nowrap"),
        parse=parse_int,
        sanity=TRADE_AD_RANGE,
    ),
    ExtractionStrategy(
        name="trade_ads_created_label",
        locator=Locator.xpath(
            "//*[contains(text(), 'Trade Ads') and contains(text(), 'Created')]"
            "/following::*[contains(@class, 'stat-data')][1]"
            " | //*[contains(text(), 'Trade Ads') and contains(text(), 'Created')]"
            "/..//*[contains(@class, 'stat-data')]"
        ),
        parse=parse_int,
        sanity=TRADE_AD_RANGE,
    ),
    *(
        ExtractionStrategy(
            name=f"stat_scan:{selector}",
            locator=Locator.css(selector),
            parse=parse_grouped_int,
            sanity=TRADE_AD_RANGE,
            scan_all=True,
        )
        for selector in (
            ".card-title.mb-1.text-light.stat-data.text-nowrap",
            "span.stat-data.text-nowrap",
            ".stat-data.text-nowrap",
            ".card-title.stat-data",
        )
    ),
)


def build_profile_extractors() -> dict[str, FieldExtractor]:
    """
    Extractors for every enrichment field, keyed by record attribute.
    """

    non_negative = in_range(0, 10**15)
    return {
        "trade_ad_count": FieldExtractor(
            field="trade_ad_count",
            strategies=TRADE_AD_STRATEGIES,
            default=0,
        ),
        "resale_value": FieldExtractor(
            field="resale_value",
            strategies=(
                ExtractionStrategy(
                    name="player_value",
                    locator=Locator.css("#player_value"),
                    parse=parse_int,
                    sanity=non_negative,
                ),
            ),
            default=0,
        ),
        "recent_value": FieldExtractor(
            field="recent_value",
            strategies=(
                ExtractionStrategy(
                    name="player_rap",
                    locator=Locator.css("#player_rap"),
                    parse=parse_int,
                    sanity=non_negative,
                ),
            ),
            default=0,
        ),
        "last_seen_text": FieldExtractor(
            field="last_seen_text",
            strategies=(
                ExtractionStrategy(
                    name="last_seen_pane",
                    locator=Locator.css("#location_pane_last_seen_online"),
                    parse=parse_text,
                ),
            ),
            default="",
        ),
    }


class EnrichmentFetcher:
    """
    Loads a candidate profile in its own session and reads the filter inputs.

    The session is never the traversal session and is closed on every path.
    Any engine failure yields `EnrichmentRecord.fail_safe()`, which the
    filter chain rejects as stale.
    """

    def __init__(
        self,
        *,
        browser: SessionProvider,
        settings: ScoutScrapingSettings,
        extractors: dict[str, FieldExtractor] | None = None,
    ) -> None:
        self._browser = browser
        self._settings = settings
        self._extractors = extractors or build_profile_extractors()

    async def fetch(self, profile_url: str) -> EnrichmentRecord:
        try:
            async with self._browser.session() as session:
                await session.navigate(profile_url)
                await session.wait_until_rendered(self._settings.profile_settle_ms)

                values = {
                    name: await extractor.extract(session)
                    for name, extractor in self._extractors.items()
                }
        except BrowserSessionError as exc:
            log_event(
                logger,
                logging.ERROR,
                "enrichment_failed",
                profile_url=profile_url,
                error=str(exc),
            )
            return EnrichmentRecord.fail_safe()

        last_seen_text = str(values.get("last_seen_text") or "")
        record = EnrichmentRecord(
            trade_ad_count=int(values.get("trade_ad_count") or 0),
            resale_value=int(values.get("resale_value") or 0),
            recent_value=int(values.get("recent_value") or 0),
            last_seen_text=last_seen_text,
            last_seen_days=parse_last_online_days(last_seen_text),
        )
        log_event(
            logger,
            logging.INFO,
            "profile_enriched",
            profile_url=profile_url,
            trade_ads=record.trade_ad_count,
            resale_value=record.resale_value,
            recent_value=record.recent_value,
            last_seen=record.last_seen_text,
            last_seen_days=record.last_seen_days,
        )
        return record
