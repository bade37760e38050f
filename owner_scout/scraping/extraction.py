"""
Ordered fallback extraction of single fields from a rendered page.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from owner_scout.scraping.browser import BrowserSession, BrowserSessionError, Locator
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

_PLAIN_INT_REGEX = re.compile(r"[0-9]+")
_GROUPED_INT_REGEX = re.compile(r"[0-9]{1,3}(,[0-9]{3})*")


def parse_int(text: str) -> int | None:
    """
    Parse an integer that may carry thousands separators ("1,234").
    """

    cleaned = text.strip().replace(",", "")
    if not _PLAIN_INT_REGEX.fullmatch(cleaned):
        return None
    return int(cleaned)


def parse_grouped_int(text: str) -> int | None:
    """
    Parse only canonically grouped integers ("12", "1,234"), nothing looser.
    """

    stripped = text.strip()
    if not _GROUPED_INT_REGEX.fullmatch(stripped):
        return None
    return int(stripped.replace(",", ""))


def parse_text(text: str) -> str | None:
    return text.strip()


def in_range(low: int, high: int) -> Callable[[Any], bool]:
    def _check(value: Any) -> bool:
        return low <= value <= high

    return _check


def _always(value: Any) -> bool:
    return True


@dataclass(frozen=True)
class ExtractionStrategy:
    """
    One way of locating and parsing a field.

    A strategy succeeds when an element matches and its text parses to a
    value accepted by `sanity`. With `scan_all` every match is tried in
    document order, otherwise only the first match is read.
    """

    name: str
    locator: Locator
    parse: Callable[[str], Any | None]
    sanity: Callable[[Any], bool] = _always
    scan_all: bool = False

    async def attempt(self, session: BrowserSession) -> Any | None:
        if self.scan_all:
            elements = await session.find_all(self.locator)
        else:
            first = await session.find_one(self.locator)
            elements = [first] if first is not None else []

        for element in elements:
            value = self.parse(await session.read_text(element))
            if value is not None and self.sanity(value):
                return value
        return None


class FieldExtractor:
    """
    Runs strategies in declared order and returns the first success.

    Never raises: misses, engine faults and parser or sanity errors count
    as strategy failure, and the declared default is returned when every
    strategy fails.
    """

    def __init__(
        self,
        *,
        field: str,
        strategies: Sequence[ExtractionStrategy],
        default: Any,
    ) -> None:
        if not strategies:
            raise ValueError(f"Field '{field}' needs at least one extraction strategy.")
        self.field = field
        self.strategies = tuple(strategies)
        self.default = default

    async def extract(self, session: BrowserSession) -> Any:
        for strategy in self.strategies:
            try:
                value = await strategy.attempt(session)
            except (BrowserSessionError, ValueError, TypeError) as exc:
                log_event(
                    logger,
                    logging.DEBUG,
                    "extraction_strategy_failed",
                    field=self.field,
                    strategy=strategy.name,
                    error=str(exc),
                )
                continue
            if value is not None:
                log_event(
                    logger,
                    logging.DEBUG,
                    "field_extracted",
                    field=self.field,
                    strategy=strategy.name,
                    value=value,
                )
                return value

        log_event(
            logger,
            logging.DEBUG,
            "field_defaulted",
            field=self.field,
            default=self.default,
        )
        return self.default
