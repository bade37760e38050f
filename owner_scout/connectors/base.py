"""
owner_scout/connectors/base.py

Shared HTTP mechanics for the identity REST connectors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from owner_scout.config import ExternalHTTPSettings
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """


class BaseConnector:
    """
    JSON-over-HTTP client with request spacing and exponential backoff.

    Throttling (429), server errors and transport failures are retried;
    any other HTTP error fails immediately.
    """

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._settings = http_settings
        self._session = session or requests.Session()
        self._sleep = sleep
        rate = http_settings.rate_limit_per_second
        self._min_interval_seconds = 1.0 / rate if rate > 0 else 0.0
        self._last_sent_at = 0.0

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        response = self._send_with_retries(method=method, url=url, params=params, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response from {url} was not valid JSON.") from exc

    def _send_with_retries(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json_body: Any,
    ) -> requests.Response:
        attempts = self._settings.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._space_requests()
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    timeout=self._settings.timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    try:
                        response.raise_for_status()
                    except requests.HTTPError as exc:
                        log_event(
                            logger,
                            logging.ERROR,
                            "connector_request_rejected",
                            source=self.source,
                            status_code=response.status_code,
                            url=url,
                        )
                        raise ConnectorRequestError(
                            f"{self.source}: {url} answered HTTP {response.status_code}."
                        ) from exc
                    return response
                last_error = requests.HTTPError(
                    f"Retryable HTTP status code: {response.status_code}",
                    response=response,
                )

            if attempt == attempts:
                break
            wait_seconds = self._settings.backoff_initial_seconds * (
                self._settings.backoff_multiplier ** (attempt - 1)
            )
            log_event(
                logger,
                logging.WARNING,
                "connector_request_retry",
                source=self.source,
                attempt=attempt,
                max_retries=self._settings.max_retries,
                wait_seconds=wait_seconds,
                error=str(last_error),
            )
            self._sleep(wait_seconds)

        log_event(
            logger,
            logging.ERROR,
            "connector_retries_exhausted",
            source=self.source,
            url=url,
            error=str(last_error),
        )
        raise ConnectorRequestError(f"{self.source}: request to {url} failed after retries.") from last_error

    def _space_requests(self) -> None:
        if self._min_interval_seconds <= 0:
            return
        remaining = self._min_interval_seconds - (time.monotonic() - self._last_sent_at)
        if remaining > 0:
            self._sleep(remaining)
        self._last_sent_at = time.monotonic()
