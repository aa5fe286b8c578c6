# src/cache/cache_factory.py — v3
"""Factory for result cache instantiation."""

from __future__ import annotations

from receipt_renamer.cache.base_cache_store import BaseResultCache
from receipt_renamer.config.settings import Settings


def create_result_cache(settings: Settings | None = None) -> BaseResultCache:
    """Instantiate the configured result cache.

    Args:
        settings: Application settings. Defaults to an enabled JSON cache
            under the default cache root with no expiry.

    Returns:
        JsonResultCache, or NullResultCache when caching is disabled.
    """
    settings = settings or Settings()

    if not settings.cache_enabled:
        from receipt_renamer.cache.null_store import NullResultCache
        return NullResultCache()

    from receipt_renamer.cache.json_store import JsonResultCache
    return JsonResultCache(
        cache_root=settings.cache_root, ttl_days=settings.cache_ttl_days
    )
