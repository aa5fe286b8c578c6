# src/batch/models.py — v3
"""Batch processing models: RenameRecord, BatchResult."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class RenameRecord(BaseModel):
    """What happened (or, in preview, would happen) to one selected item."""

    item_id: int
    original_name: str
    new_name: str | None = None
    outcome: Literal["renamed", "would_rename", "unchanged", "failed"]
    reason: str | None = None


class BatchResult(BaseModel):
    """Aggregate counts of a rename pass or a full run."""

    total: int = 0
    renamed: int = 0
    errored: int = 0
    skipped: int = 0
    dry_run: bool = False
    cancelled: bool = False
    records: list[RenameRecord] = Field(default_factory=list)
    duration_seconds: float = 0.0
