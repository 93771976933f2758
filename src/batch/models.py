# src/batch/models.py — v3
"""Batch processing models: BatchItem, BatchSummary."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from doctranslator.core.models import ItemOutcome


class BatchItem(BaseModel):
    """A single source document discovered during a batch scan."""

    source_id: str
    source_path: Path
    destination_path: Path
    # Mirrored sub-directory of the target root, created when the item runs
    create_destination_dir: bool = False


class BatchSummary(BaseModel):
    """Outcomes of one batch run, one per discovered item, in discovery order."""

    source_root: Path
    target_root: Path
    outcomes: list[ItemOutcome] = Field(default_factory=list)
    nothing_to_do: bool = False
    cancelled: bool = False
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def failures_by_reason(self) -> dict[str, int]:
        """Count failed outcomes per reason."""
        counts: dict[str, int] = {}
        for outcome in self.outcomes:
            if not outcome.success and outcome.reason:
                counts[outcome.reason] = counts.get(outcome.reason, 0) + 1
        return counts
