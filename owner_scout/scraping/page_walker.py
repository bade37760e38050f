"""
Reverse traversal of an item's paginated owner table.

Pages are visited from the last to the first and rows from the bottom to
the top, so the most recently added owners surface first.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator
from urllib.parse import urljoin

from owner_scout.domain.owners import CandidateIdentity
from owner_scout.domain.run_state import RunState
from owner_scout.scraping.browser import BrowserSession, BrowserSessionError, Locator
from owner_scout.scraping.config.models import ScoutScrapingSettings
from owner_scout.scraping.logging_utils import log_event
from owner_scout.scraping.rate_limiter import CourtesyPacer

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "Unknown Item"

_PAGE_LABEL_REGEX = re.compile(r"[0-9]+")

ITEM_NAME_LOCATOR = Locator.css("h1.page_title.mb-0")
PAGINATION_LOCATOR = Locator.css("a.page-link[data-dt-idx]")
PREVIOUS_PAGE_LOCATOR = Locator.css("li.previous:not(.disabled) > a.page-link")
PROFILE_LINK_LOCATOR = Locator.css('a[href*="/player/"]')
TABLE_ROW_LOCATORS = (
    Locator.css("#bc_owners_table tbody tr"),
    Locator.css("table tbody tr"),
    Locator.css(".table tbody tr"),
    Locator.css("tbody tr"),
)


class PageWalker:
    """
    Drives one item's owner table inside a single traversal session.

    Call `open_item`, then `discover_pages`, then iterate `walk()`. The
    consumer finishes each yielded candidate before the next row is read.
    Names already in the run's seen set are skipped here.
    """

    def __init__(
        self,
        *,
        session: BrowserSession,
        settings: ScoutScrapingSettings,
        state: RunState,
        pacer: CourtesyPacer,
    ) -> None:
        self._session = session
        self._settings = settings
        self._state = state
        self._pacer = pacer
        self._current_page: int | None = None
        self.item_id: str | None = None
        self.item_name = UNKNOWN_ITEM_NAME
        self.item_name_found = False
        self.total_pages = 1

    async def open_item(self, item_id: str) -> str:
        """
        Load the item root and read its display name (best effort).
        """

        self.item_id = item_id
        url = self._settings.item_url(item_id)
        log_event(logger, logging.INFO, "item_opening", item_id=item_id, url=url)
        await self._session.navigate(url)
        await self._session.wait_until_rendered(self._settings.page_settle_ms)
        self._current_page = 1

        title = await self._session.find_one(ITEM_NAME_LOCATOR)
        name = await self._session.read_text(title) if title is not None else ""
        if name:
            self.item_name = name
            self.item_name_found = True
        else:
            log_event(logger, logging.WARNING, "item_name_missing", item_id=item_id)
        return self.item_name

    async def discover_pages(self) -> int:
        """
        Find the highest page label and move to that page.
        """

        if not await self._session.wait_for(PAGINATION_LOCATOR, self._settings.pagination_timeout_ms):
            log_event(logger, logging.WARNING, "pagination_missing", item_id=self.item_id)
            self.total_pages = 1
            return self.total_pages

        labels = await self._pagination_labels()
        page_numbers = [int(label) for label, _ in labels if _PAGE_LABEL_REGEX.fullmatch(label)]
        self.total_pages = max([1, *page_numbers])
        log_event(
            logger,
            logging.INFO,
            "pagination_discovered",
            item_id=self.item_id,
            total_pages=self.total_pages,
        )

        if await self._click_page_label(self.total_pages, labels):
            await self._session.wait_until_rendered(self._settings.page_settle_ms)
            self._current_page = self.total_pages
        return self.total_pages

    async def walk(self) -> AsyncIterator[CandidateIdentity]:
        for page in range(self.total_pages, 0, -1):
            if not await self._position_on(page):
                log_event(
                    logger,
                    logging.WARNING,
                    "page_control_missing",
                    item_id=self.item_id,
                    page=page,
                )
                continue

            await self._session.wait_until_rendered(self._settings.table_refresh_ms)
            row_locator, row_count = await self._locate_rows()
            if row_locator is None:
                log_event(
                    logger,
                    logging.WARNING,
                    "page_without_rows",
                    item_id=self.item_id,
                    page=page,
                )
                continue

            log_event(
                logger,
                logging.INFO,
                "page_rows_found",
                item_id=self.item_id,
                page=page,
                total_pages=self.total_pages,
                rows=row_count,
                selector=row_locator.value,
            )
            for index in range(row_count - 1, -1, -1):
                try:
                    candidate = await self._read_row(row_locator, index)
                except BrowserSessionError as exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "row_failed",
                        item_id=self.item_id,
                        page=page,
                        row=index,
                        error=str(exc),
                    )
                    continue
                if candidate is not None:
                    yield candidate

            log_event(
                logger,
                logging.INFO,
                "page_finished",
                item_id=self.item_id,
                page=page,
                total_pages=self.total_pages,
            )

    async def _pagination_labels(self) -> list[tuple[str, object]]:
        buttons = await self._session.find_all(PAGINATION_LOCATOR)
        return [(await self._session.read_text(button), button) for button in buttons]

    async def _click_page_label(
        self,
        page: int,
        labels: list[tuple[str, object]] | None = None,
    ) -> bool:
        if labels is None:
            labels = await self._pagination_labels()
        for label, button in labels:
            if label == str(page):
                await self._session.click(button)
                return True
        return False

    async def _position_on(self, page: int) -> bool:
        if self._current_page == page:
            return True

        if await self._click_page_label(page):
            self._current_page = page
            return True

        # Windowed pagination may hide the label; step back one page instead.
        if self._current_page == page + 1:
            previous = await self._session.find_one(PREVIOUS_PAGE_LOCATOR)
            if previous is not None:
                await self._session.click(previous)
                self._current_page = page
                return True
        return False

    async def _locate_rows(self) -> tuple[Locator | None, int]:
        for locator in TABLE_ROW_LOCATORS:
            if not await self._session.wait_for(locator, self._settings.table_timeout_ms):
                continue
            rows = await self._session.find_all(locator)
            if rows:
                return locator, len(rows)
        return None, 0

    async def _read_row(self, row_locator: Locator, index: int) -> CandidateIdentity | None:
        # The table can re-render between candidates, so rows are re-queried.
        rows = await self._session.find_all(row_locator)
        if index >= len(rows):
            log_event(logger, logging.INFO, "row_out_of_bounds", item_id=self.item_id, row=index)
            return None

        link = await self._session.find_in(rows[index], PROFILE_LINK_LOCATOR)
        if link is None:
            log_event(logger, logging.INFO, "row_without_profile_link", item_id=self.item_id, row=index)
            return None

        display_name = (await self._session.read_text(link)).strip()
        if not display_name:
            log_event(logger, logging.INFO, "row_empty_name", item_id=self.item_id, row=index)
            await self._pacer.after_row_skip()
            return None
        if self._state.has_seen(display_name):
            log_event(logger, logging.INFO, "row_already_seen", item_id=self.item_id, name=display_name)
            await self._pacer.after_row_skip()
            return None

        href = await self._session.read_attribute(link, "href") or ""
        return CandidateIdentity(
            display_name=display_name,
            profile_url=urljoin(f"{self._settings.base_url.rstrip('/')}/", href),
        )
