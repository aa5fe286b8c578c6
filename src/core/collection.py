# src/core/collection.py — v2
"""Guarded in-memory collection of FileItems for one run.

All reads and writes go through a single lock. Callers never receive the
live FileItem objects: reads return deep copies, writes run a callback
against the live item while the lock is held.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Iterable, TypeVar

from receipt_renamer.core.models import FileItem, ItemStatus

T = TypeVar("T")


class ItemNotFoundError(KeyError):
    """Raised when an item id is not present in the collection."""


class ItemCollection:
    """Ordered, lock-guarded store of FileItems keyed by id."""

    def __init__(self, items: Iterable[FileItem] = ()) -> None:
        self._lock = threading.RLock()
        self._items: dict[int, FileItem] = {}
        self._paths: set[Path] = set()
        self._next_id = 0
        for item in items:
            self._insert(item)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def next_id(self) -> int:
        with self._lock:
            value = self._next_id
            self._next_id += 1
            return value

    def add(self, item: FileItem) -> bool:
        """Add an item unless one with the same resolved path exists.

        Returns:
            True if the item was added.
        """
        with self._lock:
            if _resolved(item.source_path) in self._paths:
                return False
            self._insert(item)
            return True

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._paths.clear()

    def get(self, item_id: int) -> FileItem:
        """Return a copy of one item."""
        with self._lock:
            return self._live(item_id).model_copy(deep=True)

    def snapshot(self) -> list[FileItem]:
        """Return copies of all items in insertion order."""
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def ids_with_status(self, *statuses: ItemStatus) -> list[int]:
        with self._lock:
            return [i.id for i in self._items.values() if i.status in statuses]

    def update(self, item_id: int, fn: Callable[[FileItem], T]) -> T:
        """Run fn against the live item under the lock and return its result."""
        with self._lock:
            return fn(self._live(item_id))

    def update_many(
        self,
        fn: Callable[[FileItem], None],
        predicate: Callable[[FileItem], bool] = lambda _: True,
    ) -> list[int]:
        """Apply fn to every item matching predicate; return the touched ids."""
        touched: list[int] = []
        with self._lock:
            for item in self._items.values():
                if predicate(item):
                    fn(item)
                    touched.append(item.id)
        return touched

    def _insert(self, item: FileItem) -> None:
        self._items[item.id] = item
        self._paths.add(_resolved(item.source_path))
        self._next_id = max(self._next_id, item.id + 1)

    def _live(self, item_id: int) -> FileItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFoundError(item_id) from None


def _resolved(path: Path) -> Path:
    return Path(path).expanduser().resolve()
