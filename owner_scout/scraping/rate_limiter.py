"""
Courtesy pacing between requests to the valuation site and the lookup responder.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from owner_scout.scraping.config.models import ScoutScrapingSettings

Sleeper = Callable[[float], Awaitable[None]]


class CourtesyPacer:
    """
    Fixed inter-row and inter-candidate delays plus item retry backoff.

    `sleep` is injectable so tests can record pauses instead of waiting.
    """

    def __init__(
        self,
        *,
        settings: ScoutScrapingSettings,
        sleep: Sleeper | None = None,
    ) -> None:
        self._settings = settings
        self._sleep = sleep or asyncio.sleep

    async def after_row_skip(self) -> None:
        await self._pause(self._settings.row_skip_delay_seconds)

    async def after_reject(self) -> None:
        await self._pause(self._settings.reject_delay_seconds)

    async def after_lookup(self) -> None:
        await self._pause(self._settings.lookup_delay_seconds)

    def retry_backoff_seconds(self, attempt: int) -> float:
        """
        Escalating backoff after failed attempt number `attempt` (1-based).
        """

        backoff = self._settings.backoff_initial_seconds * (
            self._settings.backoff_multiplier ** max(0, attempt - 1)
        )
        return min(backoff, self._settings.backoff_max_seconds)

    async def before_retry(self, attempt: int) -> float:
        seconds = self.retry_backoff_seconds(attempt)
        await self._pause(seconds)
        return seconds

    async def _pause(self, seconds: float) -> None:
        if seconds > 0:
            await self._sleep(seconds)
