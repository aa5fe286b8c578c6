# src/analyzer/base_analyzer.py — v1
"""Abstract receipt analyzer interface.

One implementation per provider; the backend is chosen by configuration
in analyzer_factory.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, TypeVar

from receipt_renamer.core.models import ReceiptInfo

T = TypeVar("T")


class AnalyzerError(Exception):
    """Analysis failed; the message is suitable for display."""


class AnalysisCancelledError(AnalyzerError):
    """Analysis was abandoned because the cancellation signal fired."""

    def __init__(self, message: str = "analysis cancelled") -> None:
        super().__init__(message)


class BaseAnalyzer(ABC):
    """Extract payment date and service name from a receipt file."""

    @abstractmethod
    async def analyze(
        self, file_path: Path, cancel: asyncio.Event | None = None
    ) -> ReceiptInfo:
        """Analyze one file.

        Args:
            file_path: Receipt file to analyze.
            cancel: Cancellation signal; when set, the call is abandoned.

        Raises:
            AnalyzerError: On any failure, including cancellation.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""


async def run_cancellable(awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """Await awaitable, abandoning it if cancel is set first.

    Raises:
        AnalysisCancelledError: If cancel fires before awaitable completes.
    """
    if cancel is None:
        return await awaitable
    if cancel.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise AnalysisCancelledError()

    call = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()

    if call.done():
        return call.result()

    call.cancel()
    await asyncio.gather(call, return_exceptions=True)
    raise AnalysisCancelledError()
