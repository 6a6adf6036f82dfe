"""
Cache Configuration

Centralized configuration for the field-data cache.

Chrome UX Report data is aggregated over a rolling 28-day window and
refreshed daily, so one lookup per URL per day is enough.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache

from aisearch.utils.config import get_settings


@dataclass(frozen=True)
class CacheTTL:
    """Cache TTL configuration by data type."""

    # Field performance data (CrUX refreshes daily)
    FIELD_DATA: timedelta = timedelta(hours=24)


@dataclass
class CacheConfig:
    """
    Field-data cache configuration.

    Settings can be overridden via environment variables:
    - FIELD_DATA_CACHE_ENABLED: Enable/disable the cache
    - FIELD_DATA_CACHE_MAX_ENTRIES: Upper bound on cached URLs
    - FIELD_DATA_CACHE_TTL_HOURS / FIELD_DATA_CACHE_ERRORS: see Settings
    """

    enabled: bool = field(default_factory=lambda: os.getenv(
        "FIELD_DATA_CACHE_ENABLED",
        "true"
    ).lower() == "true")

    max_entries: int = field(default_factory=lambda: int(os.getenv(
        "FIELD_DATA_CACHE_MAX_ENTRIES",
        "10000"
    )))

    ttl: timedelta = field(default_factory=lambda: timedelta(
        hours=get_settings().FIELD_DATA_CACHE_TTL_HOURS
    ))

    cache_errors: bool = field(default_factory=lambda: get_settings().FIELD_DATA_CACHE_ERRORS)


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get singleton cache configuration."""
    return CacheConfig()
