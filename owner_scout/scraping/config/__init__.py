"""
Config helpers for owner scraping.
"""

from owner_scout.scraping.config.loader import (
    get_filter_thresholds,
    get_lookup_settings,
    get_scout_scraping_settings,
)
from owner_scout.scraping.config.models import LookupSettings, ScoutScrapingSettings

__all__ = [
    "LookupSettings",
    "ScoutScrapingSettings",
    "get_filter_thresholds",
    "get_lookup_settings",
    "get_scout_scraping_settings",
]
