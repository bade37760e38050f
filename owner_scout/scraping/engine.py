"""
Owner scraping engine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from owner_scout.domain.owners import CandidateIdentity, ItemScrapeSummary
from owner_scout.domain.run_state import RunState
from owner_scout.lookup.correlator import LookupCorrelator
from owner_scout.notifications.webhook import (
    item_completed_message,
    item_started_message,
    match_found_message,
    run_completed_message,
)
from owner_scout.schemas.webhook import WebhookMessage
from owner_scout.scraping.browser import SessionProvider
from owner_scout.scraping.config.models import ScoutScrapingSettings
from owner_scout.scraping.enrichment import EnrichmentFetcher
from owner_scout.scraping.filters import FilterChain
from owner_scout.scraping.logging_utils import log_event
from owner_scout.scraping.page_walker import PageWalker
from owner_scout.scraping.rate_limiter import CourtesyPacer

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, message: WebhookMessage) -> bool: ...


@dataclass
class _ItemProgress:
    item_name: str = ""
    total_pages: int = 0
    candidates_evaluated: int = 0
    accepted: int = 0
    matched: int = 0
    errors: list[str] = field(default_factory=list)


class ItemScrapeOrchestrator:
    """
    Runs traversal, enrichment, filtering and lookup for every configured item.

    Candidates are handled strictly one at a time. An item whose traversal
    fails is retried from page discovery with escalating backoff; the seen
    set survives retries so processed owners are skipped quickly.
    """

    def __init__(
        self,
        *,
        settings: ScoutScrapingSettings,
        browser: SessionProvider,
        enrichment: EnrichmentFetcher,
        filter_chain: FilterChain,
        correlator: LookupCorrelator,
        notifier: Notifier,
        state: RunState,
        pacer: CourtesyPacer | None = None,
    ) -> None:
        self._settings = settings
        self._browser = browser
        self._enrichment = enrichment
        self._filter_chain = filter_chain
        self._correlator = correlator
        self._notifier = notifier
        self._state = state
        self._pacer = pacer or CourtesyPacer(settings=settings)

    async def run(self, item_ids: Sequence[str]) -> list[ItemScrapeSummary]:
        if not item_ids:
            raise ValueError("No item ids to scrape.")

        self._state.set_scraping(True)
        log_event(logger, logging.INFO, "run_started", item_ids=list(item_ids))
        summaries: list[ItemScrapeSummary] = []
        try:
            for item_id in item_ids:
                summaries.append(await self.scrape_item(item_id))
            await self._notify(run_completed_message(item_ids))
            log_event(
                logger,
                logging.INFO,
                "run_completed",
                item_ids=list(item_ids),
                total_logged=self._state.total_logged,
            )
        finally:
            self._state.set_scraping(False)
        return summaries

    async def scrape_item(self, item_id: str) -> ItemScrapeSummary:
        progress = _ItemProgress()
        max_attempts = self._settings.item_max_attempts

        attempt = 0
        while True:
            attempt += 1
            try:
                await self._scrape_item_once(item_id, progress)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                message = f"attempt={attempt} error={exc}"
                progress.errors.append(message)
                log_event(
                    logger,
                    logging.ERROR,
                    "item_scrape_failed",
                    item_id=item_id,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(exc),
                )
                if attempt >= max_attempts:
                    log_event(logger, logging.ERROR, "item_abandoned", item_id=item_id, attempts=attempt)
                    return self._summary(item_id, progress, attempts=attempt, status="failed")
                backoff = await self._pacer.before_retry(attempt)
                log_event(
                    logger,
                    logging.INFO,
                    "item_retrying",
                    item_id=item_id,
                    next_attempt=attempt + 1,
                    waited_seconds=backoff,
                )
                continue

            summary = self._summary(item_id, progress, attempts=attempt, status="success")
            log_event(
                logger,
                logging.INFO,
                "item_scrape_completed",
                item_id=item_id,
                item_name=summary.item_name,
                total_pages=summary.total_pages,
                candidates_evaluated=summary.candidates_evaluated,
                accepted=summary.accepted,
                matched=summary.matched,
                attempts=summary.attempts,
            )
            return summary

    async def _scrape_item_once(self, item_id: str, progress: _ItemProgress) -> None:
        async with self._browser.session() as session:
            walker = PageWalker(
                session=session,
                settings=self._settings,
                state=self._state,
                pacer=self._pacer,
            )
            await walker.open_item(item_id)
            progress.item_name = walker.item_name
            await self._notify(
                item_started_message(walker.item_name if walker.item_name_found else None)
            )

            progress.total_pages = await walker.discover_pages()
            async for candidate in walker.walk():
                await self._process_candidate(candidate, progress)

        await self._notify(item_completed_message(self._state.total_logged))

    async def _process_candidate(self, candidate: CandidateIdentity, progress: _ItemProgress) -> None:
        name = candidate.display_name
        if self._state.has_seen(name):
            return

        log_event(logger, logging.INFO, "candidate_checking", name=name, profile_url=candidate.profile_url)
        record = await self._enrichment.fetch(candidate.profile_url)
        decision = self._filter_chain.evaluate(record)
        self._state.mark_seen(name)
        progress.candidates_evaluated += 1

        if not decision.accepted:
            log_event(
                logger,
                logging.INFO,
                "candidate_rejected",
                name=name,
                reason=decision.reason,
                trade_ads=record.trade_ad_count,
                last_seen=record.last_seen_text,
                recent_value=record.recent_value,
            )
            await self._pacer.after_reject()
            return

        progress.accepted += 1
        log_event(logger, logging.INFO, "candidate_accepted", name=name)
        try:
            result = await self._correlator.request(name)
        except LookupError as exc:
            log_event(logger, logging.ERROR, "lookup_failed", name=name, error=str(exc))
        else:
            self._state.record_logged()
            if result.matched and result.identity:
                progress.matched += 1
                await self._notify(match_found_message(name, result.identity))
            else:
                log_event(logger, logging.INFO, "lookup_unmatched", name=name, outcome=result.outcome.value)
        await self._pacer.after_lookup()

    async def _notify(self, message: WebhookMessage) -> None:
        await asyncio.to_thread(self._notifier.send, message)

    @staticmethod
    def _summary(
        item_id: str,
        progress: _ItemProgress,
        *,
        attempts: int,
        status: str,
    ) -> ItemScrapeSummary:
        return ItemScrapeSummary(
            item_id=item_id,
            item_name=progress.item_name,
            total_pages=progress.total_pages,
            candidates_evaluated=progress.candidates_evaluated,
            accepted=progress.accepted,
            matched=progress.matched,
            attempts=attempts,
            status=status,
            errors=list(progress.errors),
        )
