# src/batch/runner.py — v1
"""Batch runner — discover, analyze, select and rename receipt files.

One BatchRunner owns the item collection for a session. The typical flow
is discover() -> analyze() -> rename_selected(); run() chains the three
for non-interactive use. Selection and template changes may happen
between analyze() and rename_selected().
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from receipt_renamer.batch.models import BatchResult, RenameRecord
from receipt_renamer.batch.scanner import BatchScanner
from receipt_renamer.core.collection import ItemCollection
from receipt_renamer.core.models import FileItem, ItemStatus
from receipt_renamer.core.state import ItemStateMachine
from receipt_renamer.logging.context import set_item_context, set_run_context
from receipt_renamer.naming.template import Template, TemplateExecutionError
from receipt_renamer.pipeline.orchestrator import (
    AnalysisOrchestrator,
    ProgressCallback,
    WorkerPoolConfig,
)
from receipt_renamer.renaming.renamer import RenameError, RenameOutcome, SafeRenamer

if TYPE_CHECKING:
    from receipt_renamer.analyzer.base_analyzer import BaseAnalyzer
    from receipt_renamer.cache.base_cache_store import BaseResultCache
    from receipt_renamer.config.settings import Settings
    from receipt_renamer.naming.history import PatternHistory
    from receipt_renamer.naming.namer import Namer

logger = logging.getLogger(__name__)


class BatchRunner:
    """Session-level facade over scanner, orchestrator, namer and renamer.

    Args:
        analyzer: Receipt analyzer backend.
        cache: Result cache.
        namer: Filename generator holding the active template.
        renamer: Collision-checked renamer.
        pool: Worker pool sizing.
        target_extension: Extension of files to process.
        history: Optional fragment history updated on template changes.
        dry_run: Default for rename_selected() and run().
        on_progress: Called with a copy of an item after each status change.
    """

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        cache: BaseResultCache,
        namer: Namer,
        renamer: SafeRenamer | None = None,
        pool: WorkerPoolConfig | None = None,
        target_extension: str = ".pdf",
        history: PatternHistory | None = None,
        dry_run: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._items = ItemCollection()
        self._namer = namer
        self._renamer = renamer or SafeRenamer()
        self._history = history
        self._dry_run = dry_run
        self._on_progress = on_progress
        self._state = ItemStateMachine()
        self._scanner = BatchScanner(target_extension, id_source=self._items.next_id)
        self._orchestrator = AnalysisOrchestrator(
            analyzer=analyzer,
            cache=cache,
            namer=namer,
            pool=pool,
            on_progress=on_progress,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        analyzer: BaseAnalyzer | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchRunner:
        """Build a runner wired from application settings.

        Raises:
            ConfigurationError: If no analyzer is given and none can be
                configured.
            TemplateSyntaxError: If the configured fragment is invalid.
        """
        from receipt_renamer.analyzer.analyzer_factory import create_analyzer
        from receipt_renamer.cache.cache_factory import create_result_cache
        from receipt_renamer.naming.history import PatternHistory
        from receipt_renamer.naming.namer import Namer

        return cls(
            analyzer=analyzer or create_analyzer(settings),
            cache=create_result_cache(settings),
            namer=Namer(settings.naming_template_fragment),
            pool=WorkerPoolConfig(max_concurrency=settings.max_concurrency),
            target_extension=settings.target_extension,
            history=PatternHistory(
                settings.pattern_history_file,
                max_items=settings.pattern_history_max_items,
            ),
            dry_run=settings.dry_run,
            on_progress=on_progress,
        )

    # --- Discovery ---

    def discover(self, directory: Path) -> list[FileItem]:
        """Add every target file directly inside directory.

        Returns:
            Copies of the newly added items.

        Raises:
            ValueError: If directory is not a directory.
        """
        return self._add(self._scanner.scan(directory))

    def add_files(self, paths: Iterable[Path]) -> list[FileItem]:
        """Add explicit files; other extensions and missing files are ignored."""
        return self._add(self._scanner.build_items(paths))

    def _add(self, items: list[FileItem]) -> list[FileItem]:
        added = [item.model_copy(deep=True) for item in items if self._items.add(item)]
        for item in added:
            self._notify(item)
        return added

    # --- Analysis ---

    async def analyze(self, cancel: asyncio.Event | None = None) -> list[FileItem]:
        """Analyze every Pending item; see AnalysisOrchestrator.run()."""
        return await self._orchestrator.run(self._items, cancel)

    # --- Selection ---

    def select(self, *item_ids: int) -> None:
        for item_id in item_ids:
            self._set_selected(item_id, True)

    def deselect(self, *item_ids: int) -> None:
        for item_id in item_ids:
            self._set_selected(item_id, False)

    def toggle(self, item_id: int) -> bool:
        """Flip selection of one item and return the new value."""
        def flip(item: FileItem) -> bool:
            if item.is_named:
                item.selected = not item.selected
            return item.selected

        return self._items.update(item_id, flip)

    def select_all(self) -> int:
        """Select every named item; return how many are selected."""
        return len(self._items.update_many(
            lambda item: setattr(item, "selected", True),
            predicate=lambda item: item.is_named,
        ))

    def deselect_all(self) -> None:
        self._items.update_many(lambda item: setattr(item, "selected", False))

    def _set_selected(self, item_id: int, value: bool) -> None:
        def apply(item: FileItem) -> None:
            # Only Ready/Cached items are eligible for selection.
            item.selected = value and item.is_named

        self._items.update(item_id, apply)

    # --- Template ---

    @property
    def template(self) -> Template:
        return self._namer.template

    def update_template(self, fragment: str) -> Template:
        """Activate a new fragment and regenerate names of named items.

        Raises:
            TemplateSyntaxError: If the fragment does not parse; nothing
                changes in that case.
        """
        template = self._namer.update_template(fragment)

        def regenerate(item: FileItem) -> None:
            if item.extracted is None:
                return
            try:
                name = self._namer.generate(item.original_name, item.extracted)
            except TemplateExecutionError as e:
                logger.warning(
                    "Keeping previous name for %s: %s", item.original_name, e,
                )
                return
            self._state.rename_name(item, name)

        touched = self._items.update_many(regenerate, predicate=lambda i: i.is_named)
        for item_id in touched:
            self._notify(self._items.get(item_id))

        if self._history is not None:
            try:
                self._history.add(fragment)
            except OSError as e:
                logger.warning("Failed to record template history: %s", e)
        return template

    # --- Rename ---

    def rename_selected(self, dry_run: bool | None = None) -> BatchResult:
        """Rename every selected Ready/Cached item.

        In dry-run mode the filesystem and item states are left untouched;
        the records describe what a real pass would do.

        Args:
            dry_run: Overrides the runner default when given.
        """
        dry_run = self._dry_run if dry_run is None else dry_run
        start = time.monotonic()
        result = BatchResult(dry_run=dry_run)

        candidates = [
            item for item in self._items.snapshot()
            if item.is_named and item.selected
        ]
        result.total = len(candidates)

        for item in candidates:
            set_item_context(item.original_name, "rename")
            record = self._preview(item) if dry_run else self._rename(item)
            result.records.append(record)
            if record.outcome in ("renamed", "would_rename"):
                result.renamed += 1
            elif record.outcome == "unchanged":
                result.skipped += 1
            else:
                result.errored += 1

        result.duration_seconds = time.monotonic() - start
        logger.info(
            "%s: %d renamed, %d unchanged, %d failed",
            "Dry run" if dry_run else "Rename pass",
            result.renamed, result.skipped, result.errored,
        )
        return result

    def _preview(self, item: FileItem) -> RenameRecord:
        try:
            outcome, destination = self._renamer.plan(item)
        except (ValueError, RenameError) as e:
            return RenameRecord(
                item_id=item.id, original_name=item.original_name,
                new_name=item.computed_name, outcome="failed", reason=str(e),
            )
        if outcome is RenameOutcome.UNCHANGED:
            return RenameRecord(
                item_id=item.id, original_name=item.original_name,
                new_name=item.original_name, outcome="unchanged",
            )
        logger.info("Would rename %s -> %s", item.original_name, destination.name)
        return RenameRecord(
            item_id=item.id, original_name=item.original_name,
            new_name=destination.name, outcome="would_rename",
        )

    def _rename(self, item: FileItem) -> RenameRecord:
        try:
            outcome, destination = self._renamer.rename(item)
        except (ValueError, RenameError) as e:
            reason = str(e)
            logger.warning("Rename failed for %s: %s", item.original_name, reason)
            self._items.update(item.id, lambda live: self._state.mark_error(live, reason))
            self._notify(self._items.get(item.id))
            return RenameRecord(
                item_id=item.id, original_name=item.original_name,
                new_name=item.computed_name, outcome="failed", reason=reason,
            )

        if outcome is RenameOutcome.UNCHANGED:
            self._items.update(item.id, self._state.mark_unchanged)
            self._notify(self._items.get(item.id))
            return RenameRecord(
                item_id=item.id, original_name=item.original_name,
                new_name=item.original_name, outcome="unchanged",
            )

        self._items.update(
            item.id, lambda live: self._state.mark_renamed(live, destination),
        )
        self._notify(self._items.get(item.id))
        return RenameRecord(
            item_id=item.id, original_name=item.original_name,
            new_name=destination.name, outcome="renamed",
        )

    # --- Full run ---

    async def run(
        self,
        directory: Path,
        cancel: asyncio.Event | None = None,
        dry_run: bool | None = None,
    ) -> BatchResult:
        """Discover, analyze and rename every file in directory.

        The returned counts cover the whole run: errored includes analysis
        failures, skipped includes already-renamed files and no-op renames.
        When cancel is set by the end of analysis nothing is renamed.

        Raises:
            ValueError: If directory is not a directory.
        """
        start = time.monotonic()
        run_id = uuid.uuid4().hex[:12]
        set_run_context(run_id)
        logger.info("Run %s started on %s", run_id, directory)

        self.discover(directory)
        await self.analyze(cancel)
        if cancel is not None and cancel.is_set():
            logger.warning("Run %s cancelled; no files renamed", run_id)
            rename_result = BatchResult(
                dry_run=self._dry_run if dry_run is None else dry_run,
                cancelled=True,
            )
        else:
            rename_result = self.rename_selected(dry_run=dry_run)

        items = self._items.snapshot()
        attempted = {r.item_id for r in rename_result.records}
        analysis_errors = sum(
            1 for item in items
            if item.status is ItemStatus.ERROR and item.id not in attempted
        )
        pre_renamed = sum(1 for item in items if item.pre_renamed)

        result = rename_result.model_copy(update={
            "total": len(items),
            "errored": rename_result.errored + analysis_errors,
            "skipped": rename_result.skipped + pre_renamed,
            "duration_seconds": time.monotonic() - start,
        })
        logger.info(
            "Run %s finished in %.1fs: %d files, %d renamed, %d skipped, %d errors",
            run_id, result.duration_seconds,
            result.total, result.renamed, result.skipped, result.errored,
        )
        return result

    # --- State access ---

    def snapshot(self) -> list[FileItem]:
        """Copies of all items in discovery order."""
        return self._items.snapshot()

    def clear(self) -> None:
        self._items.clear()

    def _notify(self, item: FileItem) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(item)
        except Exception:
            logger.exception("Progress callback failed for item %d", item.id)
