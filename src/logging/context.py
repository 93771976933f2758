# src/logging/context.py — v2
"""Contextual logging support: attach run_id, source_id, job_id and stage to log records.

Context variables are copied into every asyncio task, so concurrently
running batch items each log with their own source and job.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_source_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_id", default=None
)
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    source_id: str | None = None
    job_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        source_id=_source_id.get(),
        job_id=_job_id.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set batch-level context (called once per batch run)."""
    _run_id.set(run_id)


def set_item_context(source_id: str, job_id: str | None = None) -> None:
    """Set item-level context (called at the start of each item workflow)."""
    _source_id.set(source_id)
    _job_id.set(job_id)


def set_job_context(job_id: str) -> None:
    """Attach the remote job id once submission has returned."""
    _job_id.set(job_id)


def set_stage(stage: str | None) -> None:
    """Set the workflow stage (check, submit, poll, retrieve)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _source_id.set(None)
    _job_id.set(None)
    _stage.set(None)
