# src/logging/context.py — v2
"""Contextual logging support — attach run_id, file name and stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging. asyncio tasks copy the context
# at creation, so values set inside one worker task stay local to it.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_file_name: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_name", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    file_name: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        file_name=_file_name.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per batch run)."""
    _run_id.set(run_id)


def set_item_context(file_name: str, stage: str | None = None) -> None:
    """Set per-file context (called inside each worker task)."""
    _file_name.set(file_name)
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _file_name.set(None)
    _stage.set(None)
