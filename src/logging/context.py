# src/logging/context.py — v1
"""Contextual logging: attach document_id, run_id and pipeline stage to records.

Each pipeline run executes in its own asyncio task, which owns a copy of the
context, so values set during one run never leak into another.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    document_id: str | None = None
    run_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(
        document_id=_document_id.get(),
        run_id=_run_id.get(),
        stage=_stage.get(),
    )


def set_document_context(document_id: str, run_id: str) -> None:
    """Set document-level context (once per pipeline run)."""
    _document_id.set(document_id)
    _run_id.set(run_id)
    _stage.set(None)


def set_stage(stage: str | None) -> None:
    """Record the pipeline stage currently executing."""
    _stage.set(stage)


def clear_context() -> None:
    _document_id.set(None)
    _run_id.set(None)
    _stage.set(None)
