"""
Outbound notifications.
"""

from owner_scout.notifications.webhook import (
    WebhookNotifier,
    item_completed_message,
    item_started_message,
    match_found_message,
    run_completed_message,
)

__all__ = [
    "WebhookNotifier",
    "item_completed_message",
    "item_started_message",
    "match_found_message",
    "run_completed_message",
]
