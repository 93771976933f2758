# src/jobs/errors.py — v1
"""Workflow-level errors: local file access, wait bounds, cancellation.

Local errors never wrap remote ones; callers map each class to a
distinct ItemOutcome reason.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from doctranslator.core.models import DocumentStatus, JobHandle


class LocalIOError(Exception):
    """A local filesystem operation failed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(message)


class LocalReadDenied(LocalIOError):
    """Source document cannot be read (missing, not a file, or no permission)."""


class LocalWriteDenied(LocalIOError):
    """Destination location is missing or not writable."""


class LocalWriteFailed(LocalIOError):
    """Writing the destination failed for a reason other than permissions."""


class WaitExceeded(Exception):
    """Polling bound exhausted before the job reached a terminal status."""

    def __init__(
        self,
        handle: JobHandle,
        attempts: int,
        elapsed_s: float,
        last_status: DocumentStatus | None = None,
    ) -> None:
        self.handle = handle
        self.attempts = attempts
        self.elapsed_s = elapsed_s
        self.last_status = last_status
        last = last_status.status if last_status else "unknown"
        super().__init__(
            f"Job {handle.job_id} not finished after {attempts} polls "
            f"({elapsed_s:.1f}s, last status: {last})"
        )


class JobCancelled(Exception):
    """External cancellation was observed while waiting on a job."""


class RetrievalNotAllowed(Exception):
    """Result retrieval requested for a job that is not completed."""
