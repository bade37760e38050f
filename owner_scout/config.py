"""
owner_scout/config.py

Process-level configuration for the owner scout worker.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from owner_scout.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

_NUMERIC_ID_REGEX = re.compile(r"[0-9]+")


class ConfigurationError(RuntimeError):
    """
    Raised when required environment configuration is missing or invalid.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def parse_item_ids(raw: str | None) -> list[str]:
    """
    Split a comma-separated item id list, dropping blank and non-numeric entries.

    Order is preserved and duplicates are removed.
    """

    if not raw:
        return []
    item_ids: list[str] = []
    for entry in raw.split(","):
        candidate = entry.strip()
        if _NUMERIC_ID_REGEX.fullmatch(candidate) and candidate not in item_ids:
            item_ids.append(candidate)
    return item_ids


@dataclass(frozen=True)
class WorkerSettings:
    """
    Credentials and targets required to start the worker.
    """

    discord_token: str
    channel_id: int | None
    webhook_url: str | None
    item_ids: list[str]
    port: int = 3000

    def describe(self) -> dict[str, object]:
        """
        Loggable view with secrets truncated.
        """

        return {
            "discord_token": f"{self.discord_token[:20]}...",
            "channel_id": self.channel_id,
            "webhook_url": f"{self.webhook_url[:50]}..." if self.webhook_url else None,
            "item_ids": ",".join(self.item_ids),
            "port": self.port,
        }


def _parse_channel_id(raw_channel: str | None) -> int | None:
    """
    Lookups need a channel, but scraping can run without one: a missing or
    malformed value is logged and every lookup then fails individually.
    """

    if raw_channel is None:
        log_event(logger, logging.WARNING, "channel_id_missing")
        return None
    if not _NUMERIC_ID_REGEX.fullmatch(raw_channel):
        log_event(logger, logging.WARNING, "channel_id_invalid", value=raw_channel)
        return None
    return int(raw_channel)


def load_worker_settings() -> WorkerSettings:
    """
    Read and validate worker settings from the environment.

    Every problem is collected before raising so the operator can fix all
    of them in one restart cycle.
    """

    _load_env_once()
    errors: list[str] = []

    token = _get_optional_str_env("DISCORD_TOKEN")
    if token is None:
        errors.append("DISCORD_TOKEN environment variable is required.")

    channel_id = _parse_channel_id(_get_optional_str_env("CHANNEL_ID"))

    item_ids = parse_item_ids(os.getenv("ITEM_IDS"))
    if not item_ids:
        errors.append("ITEM_IDS contains no valid numeric item ids.")

    if errors:
        raise ConfigurationError(errors)

    return WorkerSettings(
        discord_token=token or "",
        channel_id=channel_id,
        webhook_url=_get_optional_str_env("WEBHOOK_URL"),
        item_ids=item_ids,
        port=max(1, _get_int_env("PORT", 3000)),
    )


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for identity REST lookups.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )
