from __future__ import annotations

import asyncio

from conftest import FakeBrowser, FakeElement, FakeSession
from owner_scout.domain.owners import UNKNOWN_LAST_SEEN_DAYS
from owner_scout.scraping.enrichment import EnrichmentFetcher

PROFILE_URL = "https://values.example/player/12345"


def _profile(**texts: str) -> FakeSession:
    selectors = {
        "trade_ads": "css=span.card-title.mb-1.text-light.stat-data.text-nowrap",
        "value": "css=#player_value",
        "rap": "css=#player_rap",
        "last_seen": "css=#location_pane_last_seen_online",
    }
    return FakeSession({selectors[key]: [FakeElement(text=text)] for key, text in texts.items()})


def test_fetch_reads_every_field(settings) -> None:
    session = _profile(trade_ads="212", value="4,100,000", rap="3,950,500", last_seen="3 days ago")
    browser = FakeBrowser(session)
    fetcher = EnrichmentFetcher(browser=browser, settings=settings)

    record = asyncio.run(fetcher.fetch(PROFILE_URL))

    assert record.trade_ad_count == 212
    assert record.resale_value == 4_100_000
    assert record.recent_value == 3_950_500
    assert record.last_seen_text == "3 days ago"
    assert record.last_seen_days == 3
    assert session.navigations == [PROFILE_URL]
    assert session.waits == [settings.profile_settle_ms]
    assert session.closed is True


def test_missing_fields_fall_back_to_defaults(settings) -> None:
    browser = FakeBrowser(_profile(last_seen="Online 5 minutes ago"))
    record = asyncio.run(EnrichmentFetcher(browser=browser, settings=settings).fetch(PROFILE_URL))

    assert record.trade_ad_count == 0
    assert record.resale_value == 0
    assert record.recent_value == 0
    assert record.last_seen_days == 0


def test_navigation_failure_yields_fail_safe_record(settings) -> None:
    session = FakeSession(fail_navigation=True)
    browser = FakeBrowser(session)

    record = asyncio.run(EnrichmentFetcher(browser=browser, settings=settings).fetch(PROFILE_URL))

    assert record.last_seen_text == "Unknown"
    assert record.last_seen_days == UNKNOWN_LAST_SEEN_DAYS
    assert record.trade_ad_count == 0
    assert session.closed is True


def test_each_fetch_opens_a_fresh_session(settings) -> None:
    first = _profile(last_seen="1 day ago")
    second = _profile(last_seen="9 days ago")
    browser = FakeBrowser(first, second)
    fetcher = EnrichmentFetcher(browser=browser, settings=settings)

    async def scenario():
        return [await fetcher.fetch(PROFILE_URL), await fetcher.fetch(PROFILE_URL + "0")]

    records = asyncio.run(scenario())

    assert [record.last_seen_days for record in records] == [1, 9]
    assert browser.opened == [first, second]
    assert first.closed and second.closed
