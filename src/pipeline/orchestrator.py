# src/pipeline/orchestrator.py — v3
"""Analysis orchestrator — bounded-parallel cache/analyze/name pass.

For every Pending item: mark it Analyzing, then run one task per item.
Admission to the actual work (cache lookup and, on a miss, the analyzer
call) is gated by a semaphore of size max_concurrency. run() returns only
after every dispatched task has finished.

Per-item failures never escape a task: they end as Error on the item.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from receipt_renamer.cache.base_cache_store import CacheWriteError
from receipt_renamer.cache.fingerprint import hash_file
from receipt_renamer.core.models import FileItem, ItemStatus, ReceiptInfo
from receipt_renamer.core.state import ItemStateMachine
from receipt_renamer.logging.context import set_item_context
from receipt_renamer.naming.template import TemplateExecutionError

if TYPE_CHECKING:
    from receipt_renamer.analyzer.base_analyzer import BaseAnalyzer
    from receipt_renamer.cache.base_cache_store import BaseResultCache
    from receipt_renamer.core.collection import ItemCollection
    from receipt_renamer.naming.namer import Namer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[FileItem], None]

DEFAULT_MAX_CONCURRENCY = 3
CANCELLED_REASON = "analysis cancelled"


@dataclass(frozen=True)
class WorkerPoolConfig:
    """Worker pool sizing. Values <= 0 mean one worker."""

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @property
    def slots(self) -> int:
        return max(1, self.max_concurrency)


class AnalysisOrchestrator:
    """Dispatch analysis of Pending items with bounded concurrency.

    Args:
        analyzer: Backend used on cache misses.
        cache: Content-addressed result cache.
        namer: Filename generator.
        pool: Worker pool sizing.
        on_progress: Called with a copy of an item after each status change.
    """

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        cache: BaseResultCache,
        namer: Namer,
        pool: WorkerPoolConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._cache = cache
        self._namer = namer
        self._pool = pool or WorkerPoolConfig()
        self._on_progress = on_progress
        self._state = ItemStateMachine()

    async def run(
        self,
        items: ItemCollection,
        cancel: asyncio.Event | None = None,
    ) -> list[FileItem]:
        """Analyze every Pending item in the collection.

        Args:
            items: Shared item collection for the run.
            cancel: Cancellation signal, checked before each task starts
                work and passed to the analyzer.

        Returns:
            Copies of the dispatched items in their final state.
        """
        start = time.monotonic()
        ids = items.update_many(
            self._state.start_analysis,
            predicate=lambda item: item.status is ItemStatus.PENDING,
        )
        for item_id in ids:
            self._notify(items, item_id)
        if not ids:
            logger.info("No pending items to analyze")
            return []

        semaphore = asyncio.Semaphore(self._pool.slots)
        logger.info(
            "Analyzing %d items with %d workers (%s)",
            len(ids), self._pool.slots, self._analyzer.name,
        )
        await asyncio.gather(
            *(self._process(items, item_id, semaphore, cancel) for item_id in ids)
        )

        results = [items.get(item_id) for item_id in ids]
        counts = {status: 0 for status in ItemStatus}
        for item in results:
            counts[item.status] += 1
        logger.info(
            "Analysis complete in %.1fs: %d ready, %d cached, %d errors",
            time.monotonic() - start,
            counts[ItemStatus.READY], counts[ItemStatus.CACHED], counts[ItemStatus.ERROR],
        )
        return results

    async def _process(
        self,
        items: ItemCollection,
        item_id: int,
        semaphore: asyncio.Semaphore,
        cancel: asyncio.Event | None,
    ) -> None:
        async with semaphore:
            item = items.get(item_id)
            set_item_context(item.original_name, "analyze")

            if cancel is not None and cancel.is_set():
                self._fail(items, item_id, CANCELLED_REASON)
                return

            try:
                await self._analyze_item(items, item, cancel)
            except Exception as e:
                logger.exception("Unexpected failure analyzing %s", item.original_name)
                self._fail(items, item_id, f"internal error: {e}")

    async def _analyze_item(
        self,
        items: ItemCollection,
        item: FileItem,
        cancel: asyncio.Event | None,
    ) -> None:
        content_hash = await asyncio.to_thread(self._ensure_hash, items, item)

        lookup = await self._cache.get(item.source_path, content_hash=content_hash)
        if lookup.found and lookup.result is not None:
            logger.debug("Cache hit for %s", item.original_name)
            self._finish(items, item, lookup.result, from_cache=True)
            return

        try:
            info = await self._analyzer.analyze(item.source_path, cancel)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning("Analysis failed for %s: %s", item.original_name, reason)
            self._fail(items, item.id, reason)
            return

        try:
            await self._cache.set(item.source_path, info, content_hash=content_hash)
        except CacheWriteError as e:
            logger.warning("Failed to cache result for %s: %s", item.original_name, e)

        self._finish(items, item, info, from_cache=False)

    def _ensure_hash(self, items: ItemCollection, item: FileItem) -> str | None:
        """Return the item's content hash, computing and memoizing it once."""
        if item.content_hash:
            return item.content_hash
        try:
            content_hash = hash_file(item.source_path)
        except OSError as e:
            logger.debug("Cannot hash %s: %s", item.source_path, e)
            return None
        items.update(item.id, lambda live: setattr(live, "content_hash", content_hash))
        return content_hash

    def _finish(
        self,
        items: ItemCollection,
        item: FileItem,
        info: ReceiptInfo,
        *,
        from_cache: bool,
    ) -> None:
        try:
            name = self._namer.generate(item.original_name, info)
        except TemplateExecutionError as e:
            self._fail(items, item.id, f"failed to execute template: {e}")
            return

        items.update(
            item.id,
            lambda live: self._state.mark_named(live, info, name, from_cache=from_cache),
        )
        self._notify(items, item.id)

    def _fail(self, items: ItemCollection, item_id: int, reason: str) -> None:
        items.update(item_id, lambda live: self._state.mark_error(live, reason))
        self._notify(items, item_id)

    def _notify(self, items: ItemCollection, item_id: int) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(items.get(item_id))
        except Exception:
            logger.exception("Progress callback failed for item %d", item_id)
