from __future__ import annotations

import asyncio

import pytest

from conftest import FakeBrowser, FakeOwnerSite, FakeSession, RecordingNotifier
from owner_scout.domain.owners import (
    EnrichmentRecord,
    FilterThresholds,
    LookupOutcome,
    LookupResult,
)
from owner_scout.lookup.correlator import LookupCommandError
from owner_scout.scraping.engine import ItemScrapeOrchestrator
from owner_scout.scraping.filters import FilterChain

ACTIVE = EnrichmentRecord(
    trade_ad_count=40,
    resale_value=900_000,
    recent_value=850_000,
    last_seen_text="1 day ago",
    last_seen_days=1,
)


class StubEnrichment:
    def __init__(self, records: dict[str, EnrichmentRecord] | None = None) -> None:
        self.records = records or {}
        self.fetched: list[str] = []

    async def fetch(self, profile_url: str) -> EnrichmentRecord:
        self.fetched.append(profile_url)
        name = profile_url.rsplit("/", 1)[-1]
        return self.records.get(name, EnrichmentRecord.fail_safe())


class StubCorrelator:
    def __init__(self, identities: dict[str, str] | None = None, *, failing: set[str] | None = None) -> None:
        self.identities = identities or {}
        self.failing = failing or set()
        self.requested: list[str] = []

    async def request(self, candidate_name: str) -> LookupResult:
        self.requested.append(candidate_name)
        if candidate_name in self.failing:
            raise LookupCommandError("channel unavailable")
        identity = self.identities.get(candidate_name)
        if identity is None:
            return LookupResult(subject=candidate_name, outcome=LookupOutcome.NOT_FOUND)
        return LookupResult(subject=candidate_name, outcome=LookupOutcome.MATCHED, identity=identity)


def _orchestrator(settings, state, pacer, browser, enrichment, correlator, notifier):
    return ItemScrapeOrchestrator(
        settings=settings,
        browser=browser,
        enrichment=enrichment,
        filter_chain=FilterChain(FilterThresholds()),
        correlator=correlator,
        notifier=notifier,
        state=state,
        pacer=pacer,
    )


def test_candidates_are_processed_once_across_items(settings, state, pacer, sleeper) -> None:
    browser = FakeBrowser(
        FakeOwnerSite({1: ["Alpha", "Bravo"]}),
        FakeOwnerSite({1: ["Bravo", "Charlie"]}, item_name="Valkyrie Helm"),
    )
    enrichment = StubEnrichment({"alpha": ACTIVE, "charlie": ACTIVE})
    correlator = StubCorrelator({"Alpha": "<@4242>"})
    notifier = RecordingNotifier()
    orchestrator = _orchestrator(settings, state, pacer, browser, enrichment, correlator, notifier)

    summaries = asyncio.run(orchestrator.run(["1365767", "1744060"]))

    assert enrichment.fetched == [
        "https://values.example/player/bravo",
        "https://values.example/player/alpha",
        "https://values.example/player/charlie",
    ]
    assert correlator.requested == ["Alpha", "Charlie"]
    assert state.total_logged == 2
    assert state.is_scraping is False
    assert sleeper.calls == [6.0, 10.0, 10.0, 6.0]
    assert [summary.status for summary in summaries] == ["success", "success"]
    assert summaries[0].matched == 1
    assert summaries[1].candidates_evaluated == 1

    assert notifier.contents == [
        "@everyone scraping dominus empyreus",
        None,
        "@everyone all users logged",
        "@everyone scraping valkyrie helm",
        "@everyone all users logged",
        "@everyone all items scraped and users logged",
    ]
    match = notifier.messages[1].embeds[0]
    assert match.title == "New Discord Found!"
    assert [(item.name, item.value) for item in match.fields] == [
        ("Roblox", "Alpha"),
        ("Discord", "User ID: 4242"),
    ]
    assert notifier.messages[2].embeds[0].description == "Total users logged: 1"


def test_failed_traversal_is_retried_and_skips_processed_owners(settings, state, pacer, sleeper) -> None:
    flaky = FakeOwnerSite({1: ["Alpha"], 2: ["Bravo"]}, fail_on_page=1)
    steady = FakeOwnerSite({1: ["Alpha"], 2: ["Bravo"]})
    browser = FakeBrowser(flaky, steady)
    enrichment = StubEnrichment()
    notifier = RecordingNotifier()
    orchestrator = _orchestrator(settings, state, pacer, browser, enrichment, StubCorrelator(), notifier)

    summary = asyncio.run(orchestrator.scrape_item("1365767"))

    assert summary.status == "success"
    assert summary.attempts == 2
    assert len(summary.errors) == 1
    assert summary.total_pages == 2
    assert enrichment.fetched == [
        "https://values.example/player/bravo",
        "https://values.example/player/alpha",
    ]
    assert sleeper.calls == [6.0, 10.0, 6.0, 6.0]
    assert flaky.closed and steady.closed
    assert notifier.contents == [
        "@everyone scraping dominus empyreus",
        "@everyone scraping dominus empyreus",
        "@everyone all users logged",
    ]


def test_item_is_abandoned_after_max_attempts(settings, state, pacer, sleeper) -> None:
    sessions = [FakeSession(fail_navigation=True) for _ in range(settings.item_max_attempts)]
    browser = FakeBrowser(*sessions)
    notifier = RecordingNotifier()
    orchestrator = _orchestrator(settings, state, pacer, browser, StubEnrichment(), StubCorrelator(), notifier)

    summaries = asyncio.run(orchestrator.run(["1365767"]))

    assert summaries[0].status == "failed"
    assert summaries[0].attempts == 3
    assert sleeper.calls == [10.0, 20.0]
    assert all(session.closed for session in sessions)
    assert notifier.contents == ["@everyone all items scraped and users logged"]
    assert state.is_scraping is False


def test_lookup_failure_does_not_count_as_logged(settings, state, pacer, sleeper) -> None:
    browser = FakeBrowser(FakeOwnerSite({1: ["Alpha"]}))
    enrichment = StubEnrichment({"alpha": ACTIVE})
    correlator = StubCorrelator(failing={"Alpha"})
    orchestrator = _orchestrator(settings, state, pacer, browser, enrichment, correlator, RecordingNotifier())

    summary = asyncio.run(orchestrator.scrape_item("1365767"))

    assert summary.accepted == 1
    assert summary.matched == 0
    assert state.total_logged == 0
    assert state.has_seen("Alpha")
    assert sleeper.calls == [settings.lookup_delay_seconds]


def test_unmatched_lookup_still_counts_as_logged(settings, state, pacer) -> None:
    browser = FakeBrowser(FakeOwnerSite({1: ["Alpha"]}))
    notifier = RecordingNotifier()
    orchestrator = _orchestrator(
        settings, state, pacer, browser, StubEnrichment({"alpha": ACTIVE}), StubCorrelator(), notifier
    )

    asyncio.run(orchestrator.scrape_item("1365767"))

    assert state.total_logged == 1
    assert all(message.content for message in notifier.messages)


def test_run_requires_item_ids(settings, state, pacer) -> None:
    orchestrator = _orchestrator(
        settings, state, pacer, FakeBrowser(), StubEnrichment(), StubCorrelator(), RecordingNotifier()
    )
    with pytest.raises(ValueError):
        asyncio.run(orchestrator.run([]))
