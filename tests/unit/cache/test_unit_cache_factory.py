# tests/unit/cache/test_unit_cache_factory.py — v2
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from receipt_renamer.cache.cache_factory import create_result_cache
from receipt_renamer.cache.json_store import JsonResultCache
from receipt_renamer.cache.null_store import NullResultCache
from receipt_renamer.config.settings import Settings
from receipt_renamer.core.models import ReceiptInfo


class TestCreateResultCache:
    def test_enabled_returns_json_cache(self, tmp_path: Path):
        cache = create_result_cache(Settings(cache_root=tmp_path / "c"))
        assert isinstance(cache, JsonResultCache)
        assert cache.root == tmp_path / "c"

    def test_disabled_returns_null_cache(self, tmp_path: Path):
        cache = create_result_cache(Settings(cache_enabled=False, cache_root=tmp_path))
        assert isinstance(cache, NullResultCache)

    @pytest.mark.asyncio
    async def test_null_cache_never_hits(self, tmp_path: Path):
        cache = NullResultCache()
        path = tmp_path / "a.pdf"
        await cache.set(path, ReceiptInfo(date="20250115", service="X"))
        assert (await cache.get(path)).found is False
        assert await cache.count() == 0
        assert await cache.clear() == 0
