# src/core/state.py — v1
"""Item state machine — the only code allowed to change FileItem.status.

Transitions:
    Pending   -> Analyzing | Skipped
    Analyzing -> Ready | Cached | Error
    Ready     -> Renamed | Skipped | Error
    Cached    -> Renamed | Skipped | Error

Renamed, Error and Skipped are terminal for the run. Every transition
keeps two field invariants: computed_name is set iff the status is Ready
or Cached, and failure_reason is set iff the status is Error.
"""

from __future__ import annotations

import logging
from pathlib import Path

from receipt_renamer.core.models import FileItem, ItemStatus, ReceiptInfo

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ItemStatus, frozenset[ItemStatus]] = {
    ItemStatus.PENDING: frozenset({ItemStatus.ANALYZING, ItemStatus.SKIPPED}),
    ItemStatus.ANALYZING: frozenset(
        {ItemStatus.READY, ItemStatus.CACHED, ItemStatus.ERROR}
    ),
    ItemStatus.READY: frozenset(
        {ItemStatus.RENAMED, ItemStatus.SKIPPED, ItemStatus.ERROR}
    ),
    ItemStatus.CACHED: frozenset(
        {ItemStatus.RENAMED, ItemStatus.SKIPPED, ItemStatus.ERROR}
    ),
    ItemStatus.RENAMED: frozenset(),
    ItemStatus.ERROR: frozenset(),
    ItemStatus.SKIPPED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised when a status change is not permitted from the current state."""

    def __init__(self, item: FileItem, target: ItemStatus) -> None:
        self.item_id = item.id
        self.source = item.status
        self.target = target
        super().__init__(
            f"Invalid transition for item {item.id} ({item.original_name}): "
            f"{item.status.value} -> {target.value}"
        )


class ItemStateMachine:
    """Apply validated status transitions to FileItem instances."""

    @staticmethod
    def can_transition(item: FileItem, target: ItemStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[item.status]

    def _check(self, item: FileItem, target: ItemStatus) -> None:
        if not self.can_transition(item, target):
            raise InvalidTransitionError(item, target)
        logger.debug(
            "Item %d %s: %s -> %s",
            item.id, item.original_name, item.status.value, target.value,
        )

    def skip_pre_renamed(self, item: FileItem) -> None:
        """Pending -> Skipped at discovery time (already-processed name)."""
        self._check(item, ItemStatus.SKIPPED)
        item.status = ItemStatus.SKIPPED
        item.pre_renamed = True
        item.selected = False

    def start_analysis(self, item: FileItem) -> None:
        self._check(item, ItemStatus.ANALYZING)
        item.status = ItemStatus.ANALYZING
        item.failure_reason = None

    def mark_named(
        self,
        item: FileItem,
        extracted: ReceiptInfo,
        computed_name: str,
        *,
        from_cache: bool,
    ) -> None:
        """Analyzing -> Cached (cache hit) or Ready (fresh analysis)."""
        target = ItemStatus.CACHED if from_cache else ItemStatus.READY
        self._check(item, target)
        item.status = target
        item.extracted = extracted
        item.computed_name = computed_name
        item.failure_reason = None

    def rename_name(self, item: FileItem, computed_name: str) -> None:
        """Replace the computed name of a Ready/Cached item; status unchanged."""
        if not item.is_named:
            raise InvalidTransitionError(item, item.status)
        item.computed_name = computed_name

    def mark_renamed(self, item: FileItem, new_path: Path) -> None:
        self._check(item, ItemStatus.RENAMED)
        item.status = ItemStatus.RENAMED
        item.renamed_path = new_path
        item.computed_name = None

    def mark_unchanged(self, item: FileItem) -> None:
        """Ready|Cached -> Skipped when the computed name equals the original."""
        self._check(item, ItemStatus.SKIPPED)
        item.status = ItemStatus.SKIPPED
        item.computed_name = None

    def mark_error(self, item: FileItem, reason: str) -> None:
        self._check(item, ItemStatus.ERROR)
        item.status = ItemStatus.ERROR
        item.failure_reason = reason or "unknown error"
        item.computed_name = None
