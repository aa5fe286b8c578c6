# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

ReceiptInfo is what an analyzer extracts, FileItem is one discovered
candidate file and carries its status for the duration of a run.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ReceiptInfo(BaseModel):
    """Fields extracted from a receipt by an analyzer."""

    date: str = Field(pattern=r"^\d{8}$")
    service: str = Field(min_length=1)


class ItemStatus(str, Enum):
    """Lifecycle status of a FileItem."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    READY = "ready"
    CACHED = "cached"
    RENAMED = "renamed"
    ERROR = "error"
    SKIPPED = "skipped"


# States that carry a computed_name.
NAMED_STATUSES = frozenset({ItemStatus.READY, ItemStatus.CACHED})


class FileItem(BaseModel):
    """A single file discovered for analysis and renaming.

    Mutated only through core.state (ItemStateMachine); callers outside
    the run get copies via ItemCollection.snapshot().
    """

    id: int
    source_path: Path
    original_name: str
    content_hash: str | None = None
    status: ItemStatus = ItemStatus.PENDING
    extracted: ReceiptInfo | None = None
    computed_name: str | None = None
    failure_reason: str | None = None
    renamed_path: Path | None = None
    selected: bool = True
    pre_renamed: bool = False

    @property
    def is_named(self) -> bool:
        return self.status in NAMED_STATUSES
