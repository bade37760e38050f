"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class ScoutScrapingSettings:
    """
    Runtime settings for owner table traversal and profile enrichment.
    """

    base_url: str = "https://www.rolimons.com"
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    page_settle_ms: int = 5000
    table_refresh_ms: int = 3000
    profile_settle_ms: int = 2000
    pagination_timeout_ms: int = 10000
    table_timeout_ms: int = 15000
    row_skip_delay_seconds: float = 6.0
    reject_delay_seconds: float = 6.0
    lookup_delay_seconds: float = 10.0
    item_max_attempts: int = 5
    backoff_initial_seconds: float = 10.0
    backoff_multiplier: float = 2.0
    backoff_max_seconds: float = 300.0
    webhook_timeout_seconds: float = 10.0

    def item_url(self, item_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/item/{item_id}"


@dataclass(frozen=True)
class LookupSettings:
    """
    Shape of the remote identity lookup command and its reply window.
    """

    channel_id: int | None
    responder_id: int = 298796807323123712
    command_name: str = "whois"
    subcommand_name: str = "roblox"
    option_name: str = "username"
    timeout_seconds: float = 45.0
