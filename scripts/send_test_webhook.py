"""
Send one test message to the configured notification webhook.
"""

from __future__ import annotations

import argparse
import os

from owner_scout.main import configure_logging
from owner_scout.notifications import WebhookNotifier
from owner_scout.schemas.webhook import WebhookMessage


def main() -> int:
    parser = argparse.ArgumentParser(description="Post a test message to WEBHOOK_URL.")
    parser.add_argument("--url", default=None, help="Override WEBHOOK_URL.")
    args = parser.parse_args()

    configure_logging()
    notifier = WebhookNotifier(url=args.url or os.getenv("WEBHOOK_URL"))
    delivered = notifier.send(WebhookMessage(content="Test webhook from owner-scout"))
    return 0 if delivered else 1


if __name__ == "__main__":
    raise SystemExit(main())
