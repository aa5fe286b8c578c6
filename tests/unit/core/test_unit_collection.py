# tests/unit/core/test_unit_collection.py — v2
"""Tests for core.collection — copy semantics, de-duplication, bulk updates."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from receipt_renamer.core import collection
from receipt_renamer.core.collection import ItemCollection, ItemNotFoundError
from receipt_renamer.core.models import FileItem, ItemStatus


def _item(item_id: int, path: str) -> FileItem:
    return FileItem(id=item_id, source_path=Path(path), original_name=Path(path).name)


class TestItemCollection:
    def test_add_and_len(self, tmp_path: Path):
        items = ItemCollection()
        assert items.add(_item(0, str(tmp_path / "a.pdf")))
        assert items.add(_item(1, str(tmp_path / "b.pdf")))
        assert len(items) == 2

    def test_duplicate_path_rejected(self, tmp_path: Path):
        items = ItemCollection()
        items.add(_item(0, str(tmp_path / "a.pdf")))
        assert not items.add(_item(1, str(tmp_path / "sub" / ".." / "a.pdf")))
        assert len(items) == 1

    def test_add_resolves_only_the_new_path(self, tmp_path: Path):
        items = ItemCollection()
        with patch.object(collection, "_resolved", wraps=collection._resolved) as resolved:
            for i in range(50):
                items.add(_item(i, str(tmp_path / f"{i}.pdf")))
            items.clear()
            assert items.add(_item(0, str(tmp_path / "0.pdf")))
        assert resolved.call_count <= 2 * 51

    def test_get_returns_copy(self, tmp_path: Path):
        items = ItemCollection([_item(0, str(tmp_path / "a.pdf"))])
        copy = items.get(0)
        copy.status = ItemStatus.ERROR
        assert items.get(0).status is ItemStatus.PENDING

    def test_snapshot_preserves_order(self, tmp_path: Path):
        items = ItemCollection([_item(i, str(tmp_path / f"{i}.pdf")) for i in (2, 0, 1)])
        assert [i.id for i in items.snapshot()] == [2, 0, 1]

    def test_missing_id(self):
        with pytest.raises(ItemNotFoundError):
            ItemCollection().get(42)

    def test_next_id_follows_inserted_ids(self, tmp_path: Path):
        items = ItemCollection([_item(5, str(tmp_path / "a.pdf"))])
        assert items.next_id() == 6
        assert items.next_id() == 7

    def test_update_mutates_live_item(self, tmp_path: Path):
        items = ItemCollection([_item(0, str(tmp_path / "a.pdf"))])
        result = items.update(0, lambda i: setattr(i, "selected", False) or "done")
        assert result == "done"
        assert items.get(0).selected is False

    def test_update_many_with_predicate(self, tmp_path: Path):
        items = ItemCollection([_item(i, str(tmp_path / f"{i}.pdf")) for i in range(3)])
        touched = items.update_many(
            lambda i: setattr(i, "selected", False),
            predicate=lambda i: i.id != 1,
        )
        assert touched == [0, 2]
        assert [i.selected for i in items.snapshot()] == [False, True, False]

    def test_ids_with_status(self, tmp_path: Path):
        items = ItemCollection([_item(i, str(tmp_path / f"{i}.pdf")) for i in range(2)])
        items.update(1, lambda i: setattr(i, "status", ItemStatus.SKIPPED))
        assert items.ids_with_status(ItemStatus.PENDING) == [0]

    def test_clear(self, tmp_path: Path):
        items = ItemCollection([_item(0, str(tmp_path / "a.pdf"))])
        items.clear()
        assert len(items) == 0
