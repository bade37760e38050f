"""
owner_scout/worker.py

Process bootstrap: validates configuration, serves the status endpoint,
connects the chat client, runs every configured item and stays alive until
interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from contextlib import suppress

import uvicorn
from fastapi import FastAPI

from owner_scout.config import ConfigurationError, WorkerSettings, load_worker_settings
from owner_scout.domain.run_state import RunState
from owner_scout.lookup.correlator import LookupCorrelator
from owner_scout.lookup.discord_client import DiscordLookupClient
from owner_scout.main import configure_logging, create_app
from owner_scout.notifications.webhook import WebhookNotifier
from owner_scout.scraping.browser import PlaywrightBrowser
from owner_scout.scraping.config import (
    get_filter_thresholds,
    get_lookup_settings,
    get_scout_scraping_settings,
)
from owner_scout.scraping.engine import ItemScrapeOrchestrator
from owner_scout.scraping.enrichment import EnrichmentFetcher
from owner_scout.scraping.filters import FilterChain
from owner_scout.scraping.logging_utils import log_event
from owner_scout.scraping.rate_limiter import CourtesyPacer

logger = logging.getLogger(__name__)


class StatusServer:
    """
    Runs the status app on a daemon thread so it keeps answering while the
    event loop is busy with traversal.
    """

    def __init__(self, app: FastAPI, *, port: int) -> None:
        config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name="status-server", daemon=True)
        self.port = port

    def start(self) -> None:
        self._thread.start()
        log_event(logger, logging.INFO, "status_server_started", port=self.port)

    def stop(self) -> None:
        self._server.should_exit = True
        self._thread.join(timeout=5)


def _log_task_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log_event(logger, logging.ERROR, "task_failed", task=task.get_name(), error=str(exc))
    else:
        log_event(logger, logging.INFO, "task_finished", task=task.get_name())


async def run_worker(settings: WorkerSettings) -> None:
    state = RunState()
    scraping_settings = get_scout_scraping_settings()
    lookup_settings = get_lookup_settings(channel_id=settings.channel_id)

    status_server = StatusServer(create_app(run_state=state), port=settings.port)
    status_server.start()

    client = DiscordLookupClient(responder_id=lookup_settings.responder_id)
    correlator = LookupCorrelator(gateway=client, settings=lookup_settings)
    client.set_reply_handler(correlator.handle_reply)
    browser = PlaywrightBrowser(settings=scraping_settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    log_event(logger, logging.INFO, "chat_client_login")
    client_task = asyncio.create_task(client.start(settings.discord_token), name="chat-client")
    client_task.add_done_callback(_log_task_outcome)
    run_task: asyncio.Task | None = None
    waiters = [
        asyncio.create_task(client.ready_event.wait()),
        asyncio.create_task(stop_event.wait()),
    ]
    try:
        await asyncio.wait([client_task, *waiters], return_when=asyncio.FIRST_COMPLETED)
        if client_task.done():
            client_task.result()
            return
        if stop_event.is_set():
            return

        await browser.start()
        orchestrator = ItemScrapeOrchestrator(
            settings=scraping_settings,
            browser=browser,
            enrichment=EnrichmentFetcher(browser=browser, settings=scraping_settings),
            filter_chain=FilterChain(get_filter_thresholds()),
            correlator=correlator,
            notifier=WebhookNotifier(
                url=settings.webhook_url,
                timeout_seconds=scraping_settings.webhook_timeout_seconds,
            ),
            state=state,
            pacer=CourtesyPacer(settings=scraping_settings),
        )
        run_task = asyncio.create_task(orchestrator.run(settings.item_ids), name="scrape-run")
        run_task.add_done_callback(_log_task_outcome)

        # The status endpoint keeps serving after the run completes.
        await stop_event.wait()
        log_event(logger, logging.INFO, "shutdown_requested")
    finally:
        for task in (run_task, *waiters):
            if task is not None and not task.done():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
        await client.close()
        if not client_task.done():
            client_task.cancel()
            with suppress(asyncio.CancelledError):
                await client_task
        await browser.stop()
        status_server.stop()
        log_event(logger, logging.INFO, "worker_stopped", total_logged=state.total_logged)


def main() -> int:
    configure_logging()
    try:
        settings = load_worker_settings()
    except ConfigurationError as exc:
        logger.critical("%s", exc)
        return 1

    log_event(logger, logging.INFO, "worker_configuration", **settings.describe())
    try:
        asyncio.run(run_worker(settings))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
