# src/main.py — v2
"""CLI entry point — run and cache commands.

Usage:
    receipt-renamer run <directory> [--dry-run] [--workers N] [--fragment F]
    receipt-renamer cache count
    receipt-renamer cache clear

Exit status of ``run``: 0 when nothing failed, 1 when some files failed
and some were renamed, 2 when files failed and none were renamed, 1 on
setup errors, 130 on interrupt.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from receipt_renamer.version import __version__

if TYPE_CHECKING:
    from receipt_renamer.batch.models import BatchResult
    from receipt_renamer.config.settings import Settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 1
EXIT_ALL_FAILED = 2
EXIT_INTERRUPTED = 130


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FATAL

    from receipt_renamer.config.settings import ConfigurationError, load_settings
    from receipt_renamer.logging.logger import setup_logging

    try:
        settings = load_settings(
            config_file=args.config,
            directory=getattr(args, "directory", None),
            max_concurrency=getattr(args, "workers", None),
            naming_template_fragment=getattr(args, "fragment", None),
            dry_run=getattr(args, "dry_run", None) or None,
            log_level="DEBUG" if args.verbose else None,
        )
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_FATAL
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FATAL


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="receipt-renamer",
        description=f"receipt-renamer v{__version__} — LLM-assisted receipt renaming",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None,
        help="YAML config file (default: ~/.config/receipt-renamer/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser(
        "run", help="Analyze and rename receipts in a directory",
    )
    p_run.add_argument("directory", type=Path, help="Directory to scan")
    p_run.add_argument(
        "-n", "--dry-run", action="store_true",
        help="Show what would be renamed without touching files",
    )
    p_run.add_argument(
        "-w", "--workers", type=int, default=None,
        help="Maximum concurrent analyses (default: 3)",
    )
    p_run.add_argument(
        "-f", "--fragment", default=None,
        help="Template fragment between date and original name (default: {{Service}})",
    )
    p_run.add_argument(
        "--save-fragment", action="store_true",
        help="Store --fragment in the directory's local config file",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the result cache")
    p_cache.add_argument("action", choices=("count", "clear"))
    p_cache.set_defaults(func=_cmd_cache)

    return parser


async def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a full discover/analyze/rename run."""
    from receipt_renamer.batch.runner import BatchRunner
    from receipt_renamer.config.settings import save_local_fragment

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return EXIT_FATAL

    runner = BatchRunner.from_settings(settings)
    if args.fragment and args.save_fragment:
        path = save_local_fragment(directory, args.fragment)
        logger.info("Saved template fragment to %s", path)

    cancel = asyncio.Event()
    _install_cancel_handler(cancel)

    result = await runner.run(directory, cancel=cancel)
    _print_summary(result)

    if result.cancelled:
        return EXIT_INTERRUPTED
    return exit_code_for(result.renamed, result.errored)


async def _cmd_cache(args: argparse.Namespace, settings: Settings) -> int:
    """Count or clear cached analysis results."""
    from receipt_renamer.cache.cache_factory import create_result_cache

    cache = create_result_cache(settings)
    if args.action == "clear":
        removed = await cache.clear()
        print(f"Removed {removed} cached results")
    else:
        print(f"{await cache.count()} cached results")
    return EXIT_OK


def exit_code_for(renamed: int, errored: int) -> int:
    """Map run counts to the process exit status."""
    if errored == 0:
        return EXIT_OK
    if renamed > 0:
        return EXIT_PARTIAL
    return EXIT_ALL_FAILED


def _install_cancel_handler(cancel: asyncio.Event) -> None:
    """Set the cancel event on SIGINT instead of raising KeyboardInterrupt."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handler support.
        logger.debug("SIGINT handler not installed; Ctrl-C aborts immediately")


def _print_summary(result: BatchResult) -> None:
    """Print a human-readable summary of a BatchResult."""
    title = "Dry run complete" if result.dry_run else "Run complete"
    if result.cancelled:
        title = "Run cancelled"
    print(f"\n{title}:")
    print(f"  Files found:  {result.total}")
    label = "Would rename:" if result.dry_run else "Renamed:"
    print(f"  {label:<14}{result.renamed}")
    print(f"  Skipped:      {result.skipped}")
    print(f"  Errors:       {result.errored}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    for record in result.records:
        if record.outcome == "failed":
            print(f"  ! {record.original_name}: {record.reason}")
        elif record.outcome == "would_rename":
            print(f"  {record.original_name} -> {record.new_name}")


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
