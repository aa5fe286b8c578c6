# src/cache/models.py — v2
"""Cache domain models: CacheEntry, CacheLookupResult.

One CacheEntry is persisted per distinct file content, keyed by the
SHA-256 of the file bytes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from receipt_renamer.core.models import ReceiptInfo


class CacheEntry(BaseModel):
    """Single cache entry linking a content hash to an analysis result."""

    hash: str
    analyzed_at: datetime
    result: ReceiptInfo


class CacheLookupResult(BaseModel):
    """Outcome of a cache lookup."""

    found: bool = False
    result: ReceiptInfo | None = None
    content_hash: str | None = None
