"""
In-memory stand-ins for the browser, chat gateway, webhook and pacing.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest

from owner_scout.domain.run_state import RunState
from owner_scout.scraping.browser import BrowserSession, BrowserSessionError, Locator
from owner_scout.scraping.config.models import ScoutScrapingSettings
from owner_scout.scraping.rate_limiter import CourtesyPacer


@dataclass(eq=False)
class FakeElement:
    text: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    children: dict[str, list["FakeElement"]] = field(default_factory=dict)
    on_click: Callable[[], None] | None = None
    broken: bool = False


def profile_link(name: str, href: str | None = None, *, broken: bool = False) -> FakeElement:
    return FakeElement(
        text=name,
        attributes={"href": href or f"/player/{name.lower()}"},
        broken=broken,
    )


def owner_row(name: str, href: str | None = None, *, broken: bool = False) -> FakeElement:
    return FakeElement(children={"css=a[href*=\"/player/\"]": [profile_link(name, href, broken=broken)]})


class FakeSession(BrowserSession):
    """
    Static page: selector string -> matching elements.
    """

    def __init__(
        self,
        elements: dict[str, list[FakeElement]] | None = None,
        *,
        fail_navigation: bool = False,
    ) -> None:
        self.elements = elements or {}
        self.fail_navigation = fail_navigation
        self.navigations: list[str] = []
        self.waits: list[int] = []
        self.clicks: list[FakeElement] = []
        self.closed = False

    def matches(self, locator: Locator) -> list[FakeElement]:
        return list(self.elements.get(locator.selector, []))

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)
        if self.fail_navigation:
            raise BrowserSessionError(f"net::ERR_CONNECTION_RESET at {url}")

    async def wait_until_rendered(self, timeout_ms: int) -> None:
        self.waits.append(timeout_ms)

    async def wait_for(self, locator: Locator, timeout_ms: int) -> bool:
        return bool(self.matches(locator))

    async def find_one(self, locator: Locator) -> Any | None:
        found = self.matches(locator)
        return found[0] if found else None

    async def find_all(self, locator: Locator) -> list[Any]:
        return self.matches(locator)

    async def find_in(self, element: Any, locator: Locator) -> Any | None:
        found = element.children.get(locator.selector, [])
        return found[0] if found else None

    async def click(self, element: Any) -> None:
        self.clicks.append(element)
        if element.on_click is not None:
            element.on_click()

    async def read_text(self, element: Any) -> str:
        if element.broken:
            raise BrowserSessionError("element is detached")
        return element.text

    async def read_attribute(self, element: Any, name: str) -> str | None:
        return element.attributes.get(name)

    async def close(self) -> None:
        self.closed = True


OWNER_ROWS_SELECTOR = "css=#bc_owners_table tbody tr"
PAGINATION_SELECTOR = "css=a.page-link[data-dt-idx]"


class FakeOwnerSite(FakeSession):
    """
    Item page with a paginated owner table; clicking a label switches pages.
    """

    def __init__(
        self,
        pages: dict[int, list[str]],
        *,
        labels: list[str] | None = None,
        item_name: str | None = "Dominus Empyreus",
        fail_on_page: int | None = None,
        broken_names: set[str] | None = None,
    ) -> None:
        super().__init__()
        self.broken_names = broken_names or set()
        self.pages = pages
        self.current_page = 1
        self.page_history: list[int] = []
        self.fail_on_page = fail_on_page
        if item_name:
            self.elements["css=h1.page_title.mb-0"] = [FakeElement(text=item_name)]
        if labels is None:
            labels = [str(number) for number in sorted(pages)] if len(pages) > 1 else []
        self.elements[PAGINATION_SELECTOR] = [self._label(text) for text in labels]

    def _label(self, text: str) -> FakeElement:
        element = FakeElement(text=text)
        if text.isascii() and text.isdigit():
            element.on_click = lambda number=int(text): self._go_to(number)
        return element

    def _go_to(self, number: int) -> None:
        self.current_page = number
        self.page_history.append(number)

    def matches(self, locator: Locator) -> list[FakeElement]:
        if locator.selector == OWNER_ROWS_SELECTOR:
            if self.fail_on_page is not None and self.current_page == self.fail_on_page:
                raise BrowserSessionError("target crashed")
            return [
                owner_row(name, broken=name in self.broken_names)
                for name in self.pages.get(self.current_page, [])
            ]
        return super().matches(locator)


class FakeBrowser:
    """
    Session provider handing out pre-built sessions in order.
    """

    def __init__(self, *sessions: FakeSession) -> None:
        self._queue = list(sessions)
        self.opened: list[FakeSession] = []
        self.open_now = 0
        self.max_open = 0

    @asynccontextmanager
    async def session(self) -> AsyncIterator[FakeSession]:
        current = self._queue.pop(0) if self._queue else FakeSession()
        self.opened.append(current)
        self.open_now += 1
        self.max_open = max(self.max_open, self.open_now)
        try:
            yield current
        finally:
            self.open_now -= 1
            await current.close()


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[Any] = []

    def send(self, message: Any) -> bool:
        self.messages.append(message)
        return True

    @property
    def contents(self) -> list[str | None]:
        return [message.content for message in self.messages]


@pytest.fixture()
def settings() -> ScoutScrapingSettings:
    return ScoutScrapingSettings(
        base_url="https://values.example",
        row_skip_delay_seconds=6.0,
        reject_delay_seconds=6.0,
        lookup_delay_seconds=10.0,
        item_max_attempts=3,
        backoff_initial_seconds=10.0,
        backoff_multiplier=2.0,
        backoff_max_seconds=300.0,
    )


@pytest.fixture()
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def pacer(settings: ScoutScrapingSettings, sleeper: RecordingSleep) -> CourtesyPacer:
    return CourtesyPacer(settings=settings, sleep=sleeper)


@pytest.fixture()
def state() -> RunState:
    return RunState()
