# src/batch/orchestrator.py — v2
"""Batch orchestrator: bounded fan-out of single-item workflows.

Workflow:
    1. Scan the source directory (deterministic order)
    2. Dispatch one SingleItemWorkflow per item, at most ``concurrency``
       at a time
    3. Collect every outcome into an OutcomeCollector as it completes
    4. Return a BatchSummary in discovery order

Item failures are data; nothing an item does can stop its siblings.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from doctranslator.batch.models import BatchItem, BatchSummary
from doctranslator.core.models import ItemOutcome
from doctranslator.logging.context import set_run_context

if TYPE_CHECKING:
    from doctranslator.batch.scanner import BatchScanner
    from doctranslator.jobs.workflow import SingleItemWorkflow

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


class OutcomeCollector:
    """Append-only, thread-safe store of item outcomes keyed by source id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[BatchItem] = []
        self._outcomes: dict[str, ItemOutcome] = {}

    def expect(self, items: list[BatchItem]) -> None:
        """Register the discovered items, fixing the summary order."""
        with self._lock:
            self._items = list(items)

    def record(self, outcome: ItemOutcome) -> None:
        """Record an outcome; the first outcome recorded for an item wins."""
        with self._lock:
            self._outcomes.setdefault(outcome.source_id, outcome)

    def get(self, source_id: str) -> ItemOutcome | None:
        with self._lock:
            return self._outcomes.get(source_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def ordered(self) -> list[ItemOutcome]:
        """Outcomes in discovery order; items never reached count as cancelled."""
        with self._lock:
            return [
                self._outcomes.get(item.source_id)
                or ItemOutcome.failed(
                    source_id=item.source_id,
                    source_path=item.source_path,
                    reason="cancelled",
                    detail="Not started",
                )
                for item in self._items
            ]


class BatchOrchestrator:
    """Run a SingleItemWorkflow for every document of a source directory.

    Args:
        workflow: Single-item workflow shared by all items.
        scanner: Source discovery and destination naming.
        concurrency: Maximum number of items in flight.
    """

    def __init__(
        self,
        workflow: SingleItemWorkflow,
        scanner: BatchScanner,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._workflow = workflow
        self._scanner = scanner
        self._concurrency = concurrency

    async def run(
        self,
        source_root: Path,
        target_root: Path,
        cancel_event: asyncio.Event | None = None,
        collector: OutcomeCollector | None = None,
    ) -> BatchSummary:
        """Translate every discovered document and summarise the run.

        Args:
            source_root: Directory to scan.
            target_root: Directory receiving translated documents.
            cancel_event: Cooperative cancellation for the whole batch.
            collector: Outcome store; pass one in to keep the partial
                results if the calling task is cancelled.

        Returns:
            BatchSummary with one outcome per discovered item.

        Raises:
            SourceEnumerationError: If the source cannot be listed.
        """
        t0 = time.perf_counter()
        set_run_context(uuid.uuid4().hex[:12])

        items = self._scanner.scan(source_root, target_root)
        if not items:
            logger.info("No matching documents found in %s; nothing to do", source_root)
            return BatchSummary(
                source_root=source_root,
                target_root=target_root,
                nothing_to_do=True,
                duration_seconds=round(time.perf_counter() - t0, 2),
            )

        collector = collector if collector is not None else OutcomeCollector()
        collector.expect(items)
        semaphore = asyncio.Semaphore(self._concurrency)

        logger.info(
            "Starting batch translation of %d documents from %s to %s (concurrency=%d)",
            len(items), source_root, target_root, self._concurrency,
        )

        async def _run_item(item: BatchItem) -> None:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    collector.record(
                        ItemOutcome.failed(
                            source_id=item.source_id,
                            source_path=item.source_path,
                            reason="cancelled",
                            detail="Batch cancelled before start",
                        )
                    )
                    return
                await self._workflow.run(
                    item.source_path,
                    item.destination_path,
                    source_id=item.source_id,
                    cancel_event=cancel_event,
                    on_outcome=collector.record,
                    create_destination_dir=item.create_destination_dir,
                )

        await asyncio.gather(*(_run_item(item) for item in items))

        summary = BatchSummary(
            source_root=source_root,
            target_root=target_root,
            outcomes=collector.ordered(),
            cancelled=cancel_event is not None and cancel_event.is_set(),
            duration_seconds=round(time.perf_counter() - t0, 2),
        )
        logger.info(
            "Batch translation finished: %d succeeded, %d failed (%.1fs)",
            summary.succeeded, summary.failed, summary.duration_seconds,
        )
        return summary
