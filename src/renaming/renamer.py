# src/renaming/renamer.py — v1
"""Collision-checked rename of a file to its computed name.

The existence check and the move are two steps, so two processes renaming
into the same directory at once can still race. Single-process use is
assumed.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

from receipt_renamer.core.models import FileItem

logger = logging.getLogger(__name__)


class RenameError(OSError):
    """Raised when the filesystem move fails."""


class RenameCollisionError(RenameError):
    """Raised when the destination name is already taken."""

    def __init__(self, destination: Path) -> None:
        self.destination = destination
        super().__init__(f"Destination file already exists: {destination}")


class RenameOutcome(str, Enum):
    RENAMED = "renamed"
    UNCHANGED = "unchanged"


class SafeRenamer:
    """Move files to their computed names within the same directory."""

    def plan(self, item: FileItem) -> tuple[RenameOutcome, Path]:
        """Decide what rename() would do without touching the filesystem.

        Returns:
            (UNCHANGED, source) when the computed name equals the original
            name, otherwise (RENAMED, destination).

        Raises:
            ValueError: If the item has no computed name.
            RenameCollisionError: If the destination already exists.
        """
        if not item.computed_name:
            raise ValueError(f"Item {item.id} has no computed name")

        source = Path(item.source_path)
        if item.computed_name == item.original_name:
            return RenameOutcome.UNCHANGED, source

        destination = source.parent / item.computed_name
        if os.path.lexists(destination):
            raise RenameCollisionError(destination)
        return RenameOutcome.RENAMED, destination

    def rename(self, item: FileItem) -> tuple[RenameOutcome, Path]:
        """Rename the item's file to its computed name.

        Raises:
            ValueError: If the item has no computed name.
            RenameCollisionError: If the destination already exists.
            RenameError: If the move itself fails.
        """
        outcome, destination = self.plan(item)
        if outcome is RenameOutcome.UNCHANGED:
            return outcome, destination

        try:
            os.rename(item.source_path, destination)
        except OSError as e:
            raise RenameError(f"Failed to rename file: {e}") from e

        logger.info("Renamed %s -> %s", item.original_name, destination.name)
        return outcome, destination
