"""
Field Data Caching

In-memory, process-wide cache for Chrome UX Report lookups:
- 24h TTL per URL (positive and negative results)
- In-flight coalescing so concurrent analyses trigger one provider call

Usage:
    cache = get_field_data_cache()
    result = await cache.get_or_load(url, loader)
"""

from .config import CacheConfig, CacheTTL, get_cache_config
from .field_cache import CacheEntry, FieldDataCache, get_field_data_cache

__all__ = [
    "CacheConfig",
    "CacheTTL",
    "get_cache_config",
    "CacheEntry",
    "FieldDataCache",
    "get_field_data_cache",
]
