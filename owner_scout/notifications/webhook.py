"""
owner_scout/notifications/webhook.py

Fire-and-forget delivery of pipeline notifications to a chat webhook.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone

import requests

from owner_scout.schemas.webhook import WebhookEmbed, WebhookEmbedField, WebhookMessage
from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

COLOR_COMPLETE = 0x00FF00
COLOR_MATCH = 0x00AE86

_MENTION_REGEX = re.compile(r"<@!?(\d+)>")


def clean_identity(identity: str) -> str:
    """
    Replace raw user mentions with a readable `User ID: <id>` form.
    """

    return _MENTION_REGEX.sub(r"User ID: \1", identity)


def item_started_message(item_name: str | None) -> WebhookMessage:
    if not item_name:
        return WebhookMessage(content="@everyone scraping unknown item")
    return WebhookMessage(content=f"@everyone scraping {item_name.lower()}")


def item_completed_message(total_logged: int) -> WebhookMessage:
    return WebhookMessage(
        content="@everyone all users logged",
        embeds=[
            WebhookEmbed(
                title="Scraping Complete",
                description=f"Total users logged: {total_logged}",
                color=COLOR_COMPLETE,
            )
        ],
    )


def run_completed_message(item_ids: Sequence[str]) -> WebhookMessage:
    return WebhookMessage(
        content="@everyone all items scraped and users logged",
        embeds=[
            WebhookEmbed(
                title="All Scraping Complete",
                description=f"Scraped items: {', '.join(item_ids)}",
                color=COLOR_COMPLETE,
            )
        ],
    )


def match_found_message(
    candidate_name: str,
    identity: str,
    *,
    now: datetime | None = None,
) -> WebhookMessage:
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return WebhookMessage(
        embeds=[
            WebhookEmbed(
                title="New Discord Found!",
                color=COLOR_MATCH,
                fields=[
                    WebhookEmbedField(name="Roblox", value=candidate_name, inline=True),
                    WebhookEmbedField(name="Discord", value=clean_identity(identity), inline=True),
                ],
                timestamp=timestamp,
            )
        ]
    )


class WebhookNotifier:
    """
    Posts messages to the configured webhook URL.

    Delivery is never retried and never raises; `send` reports success.
    """

    def __init__(
        self,
        *,
        url: str | None,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def send(self, message: WebhookMessage) -> bool:
        payload = message.to_payload()
        if not self._url:
            log_event(logger, logging.WARNING, "webhook_disabled", content=payload.get("content"))
            return False

        try:
            response = self._session.post(self._url, json=payload, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            log_event(logger, logging.ERROR, "webhook_delivery_failed", error=str(exc))
            return False

        if not response.ok:
            log_event(
                logger,
                logging.ERROR,
                "webhook_delivery_failed",
                status_code=response.status_code,
                body=response.text[:500],
            )
            return False

        log_event(logger, logging.INFO, "webhook_sent", status_code=response.status_code)
        return True
