# src/cache/null_store.py — v1
"""No-op cache used when caching is disabled."""

from __future__ import annotations

from pathlib import Path

from receipt_renamer.cache.base_cache_store import BaseResultCache
from receipt_renamer.cache.models import CacheLookupResult
from receipt_renamer.core.models import ReceiptInfo


class NullResultCache(BaseResultCache):
    """Always misses, never stores."""

    async def get(
        self, path: Path, content_hash: str | None = None
    ) -> CacheLookupResult:
        return CacheLookupResult(content_hash=content_hash)

    async def set(
        self, path: Path, result: ReceiptInfo, content_hash: str | None = None
    ) -> None:
        return None

    async def clear(self) -> int:
        return 0

    async def count(self) -> int:
        return 0
