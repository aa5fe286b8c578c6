# src/cache/base_cache_store.py — v2
"""Abstract result cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from receipt_renamer.cache.models import CacheLookupResult
from receipt_renamer.core.models import ReceiptInfo


class CacheWriteError(OSError):
    """Raised when an analysis result cannot be persisted."""


class BaseResultCache(ABC):
    """Content-addressed store of prior analysis results.

    Implementations key entries by the SHA-256 of the file bytes. Callers
    that already know the hash pass it as content_hash to avoid re-reading
    the file.
    """

    @abstractmethod
    async def get(
        self, path: Path, content_hash: str | None = None
    ) -> CacheLookupResult:
        """Look up the result for a file's content.

        Never raises: unreadable files, missing, expired or corrupt
        entries all yield found=False.
        """

    @abstractmethod
    async def set(
        self, path: Path, result: ReceiptInfo, content_hash: str | None = None
    ) -> None:
        """Store or overwrite the result for a file's content.

        Raises:
            CacheWriteError: If the entry cannot be written.
        """

    @abstractmethod
    async def clear(self) -> int:
        """Remove all entries; return how many were removed."""

    @abstractmethod
    async def count(self) -> int:
        """Number of persisted entries."""
