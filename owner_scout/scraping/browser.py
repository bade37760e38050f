"""
Rendering-engine boundary for owner scraping.

`BrowserSession` is the page-navigation and element-query capability the
traversal and enrichment code depend on. `PlaywrightBrowser` hands out
isolated sessions backed by one Playwright browser context each.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from owner_scout.scraping.config.models import ScoutScrapingSettings
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class BrowserSessionError(RuntimeError):
    """
    Raised when the rendering engine fails (navigation, crash, closed page).
    """


@dataclass(frozen=True)
class Locator:
    """
    Element query in one of the engine's selector dialects.
    """

    kind: str
    value: str

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls(kind="css", value=value)

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls(kind="xpath", value=value)

    @property
    def selector(self) -> str:
        return f"{self.kind}={self.value}"

    def __str__(self) -> str:
        return self.selector


class BrowserSession(ABC):
    """
    One rendering session (one DOM at a time).

    Queries return `None` or an empty list when nothing matches; only engine
    faults raise `BrowserSessionError`.
    """

    @abstractmethod
    async def navigate(self, url: str) -> None: ...

    @abstractmethod
    async def wait_until_rendered(self, timeout_ms: int) -> None: ...

    @abstractmethod
    async def wait_for(self, locator: Locator, timeout_ms: int) -> bool:
        """
        Wait until at least one element matches; False on timeout.
        """

    @abstractmethod
    async def find_one(self, locator: Locator) -> Any | None: ...

    @abstractmethod
    async def find_all(self, locator: Locator) -> list[Any]: ...

    @abstractmethod
    async def find_in(self, element: Any, locator: Locator) -> Any | None: ...

    @abstractmethod
    async def click(self, element: Any) -> None: ...

    @abstractmethod
    async def read_text(self, element: Any) -> str: ...

    @abstractmethod
    async def read_attribute(self, element: Any, name: str) -> str | None: ...

    @abstractmethod
    async def close(self) -> None: ...


class SessionProvider(Protocol):
    def session(self) -> AbstractAsyncContextManager[BrowserSession]: ...


class PlaywrightSession(BrowserSession):
    def __init__(self, *, context: BrowserContext, page: Page) -> None:
        self._context = context
        self._page = page

    async def navigate(self, url: str) -> None:
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=60000)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Navigation to {url} failed: {exc}") from exc

    async def wait_until_rendered(self, timeout_ms: int) -> None:
        try:
            await self._page.wait_for_timeout(timeout_ms)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Page closed while waiting: {exc}") from exc

    async def wait_for(self, locator: Locator, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_selector(locator.selector, state="attached", timeout=timeout_ms)
        except PlaywrightError as exc:
            if self._page.is_closed():
                raise BrowserSessionError(f"Page closed while waiting: {exc}") from exc
            return False
        return True

    async def find_one(self, locator: Locator) -> Any | None:
        try:
            return await self._page.query_selector(locator.selector)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Query {locator} failed: {exc}") from exc

    async def find_all(self, locator: Locator) -> list[Any]:
        try:
            return await self._page.query_selector_all(locator.selector)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Query {locator} failed: {exc}") from exc

    async def find_in(self, element: Any, locator: Locator) -> Any | None:
        try:
            return await element.query_selector(locator.selector)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Scoped query {locator} failed: {exc}") from exc

    async def click(self, element: Any) -> None:
        try:
            await element.click()
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Click failed: {exc}") from exc

    async def read_text(self, element: Any) -> str:
        try:
            return (await element.inner_text()).strip()
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Reading text failed: {exc}") from exc

    async def read_attribute(self, element: Any, name: str) -> str | None:
        try:
            return await element.get_attribute(name)
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Reading attribute {name} failed: {exc}") from exc

    async def close(self) -> None:
        try:
            await self._context.close()
        except PlaywrightError as exc:
            log_event(logger, logging.WARNING, "browser_session_close_failed", error=str(exc))


class PlaywrightBrowser:
    """
    Owns the Playwright driver and browser; every session gets its own context.
    """

    def __init__(self, *, settings: ScoutScrapingSettings) -> None:
        self._settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._open_sessions: set[BrowserSession] = set()

    async def start(self) -> None:
        if self._browser is not None:
            return
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._settings.headless,
                args=BROWSER_ARGS,
            )
        except PlaywrightError as exc:
            await self.stop()
            raise BrowserSessionError(f"Browser launch failed: {exc}") from exc
        log_event(logger, logging.INFO, "browser_started", headless=self._settings.headless)

    async def stop(self) -> None:
        """
        Close every open session, then the browser and driver.
        """

        for session in list(self._open_sessions):
            await session.close()
        self._open_sessions.clear()
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as exc:
                log_event(logger, logging.WARNING, "browser_close_failed", error=str(exc))
        if self._playwright is not None:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None

    async def open_session(self) -> BrowserSession:
        if self._browser is None:
            await self.start()
        assert self._browser is not None
        try:
            context = await self._browser.new_context(
                user_agent=self._settings.user_agent,
                viewport={"width": 1920, "height": 1080},
            )
            page = await context.new_page()
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Opening browser session failed: {exc}") from exc
        session = PlaywrightSession(context=context, page=page)
        self._open_sessions.add(session)
        return session

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """
        Scoped session, closed on exit even when the body raises.
        """

        opened = await self.open_session()
        try:
            yield opened
        finally:
            self._open_sessions.discard(opened)
            await opened.close()

    async def __aenter__(self) -> "PlaywrightBrowser":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
