"""
owner_scout/domain/run_state.py

Mutable run state shared between the scrape orchestrator and the status endpoint.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class RunSnapshot:
    scraping: bool
    total_logged: int
    seen_count: int
    timestamp: datetime


class RunState:
    """
    Counters and the process-wide seen set for one worker lifetime.

    Only the orchestrator mutates this object. The status endpoint runs on
    another thread and reads through `snapshot()`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._is_scraping = False
        self._total_logged = 0
        self._seen_names: set[str] = set()

    @property
    def is_scraping(self) -> bool:
        return self._is_scraping

    @property
    def total_logged(self) -> int:
        return self._total_logged

    def set_scraping(self, value: bool) -> None:
        with self._lock:
            self._is_scraping = value

    def record_logged(self) -> int:
        with self._lock:
            self._total_logged += 1
            return self._total_logged

    def has_seen(self, display_name: str) -> bool:
        return display_name in self._seen_names

    def mark_seen(self, display_name: str) -> None:
        with self._lock:
            self._seen_names.add(display_name)

    def snapshot(self) -> RunSnapshot:
        with self._lock:
            return RunSnapshot(
                scraping=self._is_scraping,
                total_logged=self._total_logged,
                seen_count=len(self._seen_names),
                timestamp=datetime.now(timezone.utc),
            )
