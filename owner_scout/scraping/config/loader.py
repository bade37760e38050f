"""
Environment loader for owner scraping settings.
"""

from __future__ import annotations

import os
from functools import lru_cache

from owner_scout.config import load_env_files
from owner_scout.domain.owners import FilterThresholds
from owner_scout.scraping.config.models import (
    DEFAULT_USER_AGENT,
    LookupSettings,
    ScoutScrapingSettings,
)


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


@lru_cache(maxsize=1)
def get_scout_scraping_settings() -> ScoutScrapingSettings:
    """
    Return cached traversal settings from environment variables.
    """

    load_env_files()
    return ScoutScrapingSettings(
        base_url=_get_str_env("SCOUT_BASE_URL", "https://www.rolimons.com"),
        headless=_get_bool_env("SCOUT_HEADLESS", True),
        user_agent=_get_str_env("SCOUT_USER_AGENT", DEFAULT_USER_AGENT),
        page_settle_ms=max(0, _get_int_env("PAGE_SETTLE_MS", 5000)),
        table_refresh_ms=max(0, _get_int_env("TABLE_REFRESH_MS", 3000)),
        profile_settle_ms=max(0, _get_int_env("PROFILE_SETTLE_MS", 2000)),
        pagination_timeout_ms=max(1, _get_int_env("PAGINATION_TIMEOUT_MS", 10000)),
        table_timeout_ms=max(1, _get_int_env("TABLE_TIMEOUT_MS", 15000)),
        row_skip_delay_seconds=max(0.0, _get_float_env("ROW_SKIP_DELAY_SECONDS", 6.0)),
        reject_delay_seconds=max(0.0, _get_float_env("REJECT_DELAY_SECONDS", 6.0)),
        lookup_delay_seconds=max(0.0, _get_float_env("LOOKUP_DELAY_SECONDS", 10.0)),
        item_max_attempts=max(1, _get_int_env("ITEM_MAX_ATTEMPTS", 5)),
        backoff_initial_seconds=max(0.0, _get_float_env("ITEM_RETRY_BACKOFF_SECONDS", 10.0)),
        backoff_multiplier=max(1.0, _get_float_env("ITEM_RETRY_BACKOFF_MULTIPLIER", 2.0)),
        backoff_max_seconds=max(0.0, _get_float_env("ITEM_RETRY_BACKOFF_MAX_SECONDS", 300.0)),
        webhook_timeout_seconds=max(1.0, _get_float_env("WEBHOOK_TIMEOUT_SECONDS", 10.0)),
    )


@lru_cache(maxsize=1)
def get_filter_thresholds() -> FilterThresholds:
    """
    Return the candidate filter ceilings, loaded once per process.
    """

    load_env_files()
    return FilterThresholds(
        trade_ad_ceiling=max(0, _get_int_env("TRADE_AD_CEILING", 500)),
        stale_days_ceiling=max(0, _get_int_env("STALE_DAYS_CEILING", 4)),
        value_ceiling=max(0, _get_int_env("VALUE_CEILING", 6_000_000)),
    )


def get_lookup_settings(*, channel_id: int | None) -> LookupSettings:
    """
    Build lookup command settings for the configured channel.
    """

    load_env_files()
    return LookupSettings(
        channel_id=channel_id,
        responder_id=_get_int_env("LOOKUP_RESPONDER_ID", 298796807323123712),
        command_name=_get_str_env("LOOKUP_COMMAND", "whois"),
        subcommand_name=_get_str_env("LOOKUP_SUBCOMMAND", "roblox"),
        option_name=_get_str_env("LOOKUP_OPTION", "username"),
        timeout_seconds=max(1.0, _get_float_env("LOOKUP_TIMEOUT_SECONDS", 45.0)),
    )
