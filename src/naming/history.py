# src/naming/history.py — v1
"""Recently used template fragments, most recent first."""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_ITEMS = 20


class PatternHistory:
    """JSON-file backed list of template fragments without duplicates."""

    def __init__(self, file_path: Path | str, max_items: int = MAX_ITEMS) -> None:
        self._path = Path(file_path).expanduser()
        self._max_items = max(1, max_items)

    def get(self) -> list[str]:
        """Return the history; an unreadable file reads as empty."""
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return []
        if not isinstance(data, list):
            return []
        return [p for p in data if isinstance(p, str)]

    def add(self, pattern: str) -> None:
        """Move pattern to the front, dropping duplicates and overflow.

        Raises:
            OSError: If the history file cannot be written.
        """
        if not pattern:
            return
        history = [pattern] + [p for p in self.get() if p != pattern]
        history = history[: self._max_items]

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(history, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("Recorded template fragment %r (%d in history)", pattern, len(history))
