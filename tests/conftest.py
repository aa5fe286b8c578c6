# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a scripted fake analyzer, sample receipt data and receipt files
in temp directories. No network access — LLM backends are always faked.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from receipt_renamer.analyzer.base_analyzer import AnalyzerError, BaseAnalyzer
from receipt_renamer.core.models import FileItem, ReceiptInfo


class FakeAnalyzer(BaseAnalyzer):
    """Analyzer returning scripted results keyed by file name.

    Files listed in ``failures`` raise AnalyzerError; unknown files get the
    default result. Tracks call count and peak concurrency.
    """

    def __init__(
        self,
        results: dict[str, ReceiptInfo] | None = None,
        failures: dict[str, str] | None = None,
        default: ReceiptInfo | None = None,
        delay: float = 0.0,
    ) -> None:
        self.results = results or {}
        self.failures = failures or {}
        self.default = default or ReceiptInfo(date="20250115", service="Cursor")
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    @property
    def name(self) -> str:
        return "fake"

    async def analyze(
        self, file_path: Path, cancel: asyncio.Event | None = None
    ) -> ReceiptInfo:
        file_path = Path(file_path)
        self.calls.append(file_path.name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if file_path.name in self.failures:
                raise AnalyzerError(self.failures[file_path.name])
            return self.results.get(file_path.name, self.default)
        finally:
            self.active -= 1


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_info() -> ReceiptInfo:
    return ReceiptInfo(date="20250115", service="Cursor")


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def receipt_dir(tmp_path: Path) -> Path:
    """Directory with three receipts, one already renamed, one non-PDF."""
    d = tmp_path / "receipts"
    d.mkdir()
    (d / "Receipt-001.pdf").write_bytes(b"%PDF-1.4 receipt one")
    (d / "Receipt-002.pdf").write_bytes(b"%PDF-1.4 receipt two")
    (d / "invoice.PDF").write_bytes(b"%PDF-1.4 upper-case extension")
    (d / "20240101-Old-Receipt.pdf").write_bytes(b"%PDF-1.4 done already")
    (d / "notes.txt").write_text("not a receipt", encoding="utf-8")
    return d


@pytest.fixture
def make_item(tmp_path: Path):
    """Factory creating a FileItem backed by a real file."""

    def _make(name: str = "Receipt-001.pdf", item_id: int = 0, content: bytes | None = None) -> FileItem:
        path = tmp_path / name
        path.write_bytes(content if content is not None else f"%PDF {name}".encode())
        return FileItem(id=item_id, source_path=path, original_name=name)

    return _make


@pytest.fixture
def make_analyzer():
    """Factory for FakeAnalyzer with scripted results or failures."""
    return FakeAnalyzer
