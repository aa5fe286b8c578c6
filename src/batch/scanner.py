# src/batch/scanner.py — v3
"""Batch scanner — discover candidate files in a directory.

Only the immediate entries of the directory are listed. Files whose name
already has the processed shape (YYYYMMDD-<middle>-<rest>.<ext>) are
created Skipped so repeated runs never re-process their own output.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable

from receipt_renamer.core.models import FileItem
from receipt_renamer.core.state import ItemStateMachine

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".pdf"


def processed_name_pattern(extension: str = DEFAULT_EXTENSION) -> re.Pattern[str]:
    """Regex for names produced by a previous run, e.g. 20250115-Cursor-x.pdf."""
    return re.compile(r"^[0-9]{8}-.+-.+" + re.escape(extension) + r"$", re.IGNORECASE)


def is_already_renamed(filename: str, extension: str = DEFAULT_EXTENSION) -> bool:
    return processed_name_pattern(extension).match(filename) is not None


class BatchScanner:
    """Turn directory entries or explicit paths into FileItems.

    Args:
        extension: Target extension, matched case-insensitively.
        id_source: Callable returning the next item id.
    """

    def __init__(
        self,
        extension: str = DEFAULT_EXTENSION,
        id_source: Callable[[], int] | None = None,
    ) -> None:
        self._extension = extension if extension.startswith(".") else f".{extension}"
        self._pattern = processed_name_pattern(self._extension)
        self._state = ItemStateMachine()
        self._counter = 0
        self._id_source = id_source or self._next_local_id

    @property
    def extension(self) -> str:
        return self._extension

    def scan(self, scan_root: Path) -> list[FileItem]:
        """Discover all target files directly inside scan_root.

        Raises:
            ValueError: If scan_root is not a directory.
        """
        scan_root = Path(scan_root).expanduser()
        if not scan_root.is_dir():
            msg = f"Scan root is not a directory: {scan_root}"
            raise ValueError(msg)

        items = self.build_items(p for p in sorted(scan_root.iterdir()) if p.is_file())
        pre_renamed = sum(1 for item in items if item.pre_renamed)
        logger.info(
            "Scanned %s: found %d %s files (%d to process, %d already renamed)",
            scan_root, len(items), self._extension, len(items) - pre_renamed, pre_renamed,
        )
        return items

    def build_items(self, paths: Iterable[Path]) -> list[FileItem]:
        """Create FileItems for paths with the target extension.

        Paths are de-duplicated by resolved path; missing files and other
        extensions are ignored.
        """
        items: list[FileItem] = []
        seen: set[Path] = set()
        for path in paths:
            path = Path(path).expanduser()
            if path.suffix.lower() != self._extension.lower():
                continue
            if not path.is_file():
                logger.warning("Ignoring missing file: %s", path)
                continue
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            items.append(self._make_item(path))
        return items

    def _make_item(self, path: Path) -> FileItem:
        item = FileItem(
            id=self._id_source(),
            source_path=path,
            original_name=path.name,
        )
        if self._pattern.match(path.name):
            self._state.skip_pre_renamed(item)
        return item

    def _next_local_id(self) -> int:
        value = self._counter
        self._counter += 1
        return value
