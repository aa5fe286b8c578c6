# src/cache/json_store.py — v2
"""JSON file-based result cache (default backend).

Stores one JSON file per content hash under the cache root:

    {"hash": "<sha256>", "analyzed_at": "<RFC3339>",
     "result": {"date": "YYYYMMDD", "service": "..."}}

Expiry is checked only on read; there is no background sweeper.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from receipt_renamer.cache.base_cache_store import BaseResultCache, CacheWriteError
from receipt_renamer.cache.fingerprint import hash_file
from receipt_renamer.cache.models import CacheEntry, CacheLookupResult
from receipt_renamer.core.models import ReceiptInfo

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JsonResultCache(BaseResultCache):
    """File-based result cache using one JSON file per content hash."""

    def __init__(
        self,
        cache_root: Path | str,
        ttl_days: int = 0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._root = Path(cache_root).expanduser()
        self._ttl_days = max(0, ttl_days)
        self._clock = clock
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create cache directory %s: %s", self._root, e)

    @property
    def root(self) -> Path:
        return self._root

    async def get(
        self, path: Path, content_hash: str | None = None
    ) -> CacheLookupResult:
        """Look up the cached result for a file's content."""
        try:
            key = content_hash or hash_file(path)
        except OSError as e:
            logger.debug("Cannot hash %s for cache lookup: %s", path, e)
            return CacheLookupResult()

        entry_path = self._entry_path(key)
        if not entry_path.is_file():
            return CacheLookupResult(content_hash=key)

        try:
            data = json.loads(entry_path.read_text(encoding="utf-8"))
            entry = CacheEntry(**data)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", key, e)
            return CacheLookupResult(content_hash=key)

        if entry.hash != key:
            logger.debug("Ignoring cache entry %s with mismatched hash", key)
            return CacheLookupResult(content_hash=key)

        if self._is_expired(entry):
            logger.debug("Cache entry %s expired (analyzed %s)", key, entry.analyzed_at)
            self._remove(entry_path)
            return CacheLookupResult(content_hash=key)

        return CacheLookupResult(found=True, result=entry.result, content_hash=key)

    async def set(
        self, path: Path, result: ReceiptInfo, content_hash: str | None = None
    ) -> None:
        """Write or overwrite the entry for a file's content."""
        try:
            key = content_hash or hash_file(path)
        except OSError as e:
            raise CacheWriteError(f"Failed to read file for hashing: {e}") from e

        entry = CacheEntry(hash=key, analyzed_at=self._clock(), result=result)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            self._write_atomic(self._entry_path(key), entry.model_dump_json(indent=2))
        except OSError as e:
            raise CacheWriteError(f"Failed to write cache file: {e}") from e

    async def clear(self) -> int:
        """Remove all entries."""
        removed = 0
        for entry_path in self._entry_files():
            try:
                entry_path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        logger.info("Cleared %d cache entries from %s", removed, self._root)
        return removed

    async def count(self) -> int:
        return len(self._entry_files())

    def _is_expired(self, entry: CacheEntry) -> bool:
        if self._ttl_days <= 0:
            return False
        analyzed_at = entry.analyzed_at
        if analyzed_at.tzinfo is None:
            analyzed_at = analyzed_at.replace(tzinfo=timezone.utc)
        return self._clock() - analyzed_at > timedelta(days=self._ttl_days)

    def _entry_files(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return [p for p in self._root.glob(f"*{_SUFFIX}") if p.is_file()]

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}{_SUFFIX}"

    @staticmethod
    def _remove(entry_path: Path) -> None:
        try:
            entry_path.unlink()
        except OSError as e:
            logger.debug("Failed to remove expired cache entry %s: %s", entry_path, e)

    @staticmethod
    def _write_atomic(target: Path, text: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
