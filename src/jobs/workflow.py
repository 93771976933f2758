# src/jobs/workflow.py — v2
"""Single-item workflow: check → submit → poll → check → retrieve.

run() always returns exactly one ItemOutcome. Errors are mapped to a
failure reason here and never cross this boundary; the only exception
that escapes is asyncio.CancelledError, after the cancelled outcome has
been handed to ``on_outcome``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from doctranslator.client.errors import (
    RemoteServiceError,
    RemoteTransportError,
)
from doctranslator.core.models import FailureReason, ItemOutcome
from doctranslator.jobs.errors import (
    JobCancelled,
    LocalIOError,
    LocalReadDenied,
    LocalWriteDenied,
    WaitExceeded,
)
from doctranslator.jobs.poller import StatusPoller
from doctranslator.jobs.retriever import ResultRetriever, check_writable
from doctranslator.jobs.submission import check_readable, submit_document
from doctranslator.logging.context import set_item_context, set_job_context, set_stage

if TYPE_CHECKING:
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.core.models import JobHandle
    from doctranslator.jobs.poller import PollingConfig

logger = logging.getLogger(__name__)


class _ItemFailed(Exception):
    """Internal control flow: a stage failed with a known reason."""

    def __init__(self, reason: FailureReason, detail: str | None) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(detail or reason)


class SingleItemWorkflow:
    """Translate one document end to end.

    Args:
        client: Shared translation-service client.
        target_language: Target language code.
        source_language: Source language code, None for auto-detect.
        polling: Wait policy for the status poller.
        poller: Pre-built poller (overrides ``polling``).
        retriever: Pre-built retriever.
    """

    def __init__(
        self,
        client: BaseTranslationClient,
        target_language: str,
        source_language: str | None = None,
        polling: PollingConfig | None = None,
        poller: StatusPoller | None = None,
        retriever: ResultRetriever | None = None,
    ) -> None:
        self._client = client
        self._target_language = target_language
        self._source_language = source_language
        self._poller = poller or StatusPoller(client, polling)
        self._retriever = retriever or ResultRetriever(client)

    @property
    def target_language(self) -> str:
        return self._target_language

    @property
    def source_language(self) -> str | None:
        return self._source_language

    @property
    def poller(self) -> StatusPoller:
        return self._poller

    async def run(
        self,
        source_path: Path,
        destination_path: Path,
        source_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
        on_outcome: Callable[[ItemOutcome], None] | None = None,
        create_destination_dir: bool = False,
    ) -> ItemOutcome:
        """Process one document and return its outcome.

        Args:
            source_path: Document to translate.
            destination_path: Where the translated document is written.
            source_id: Identity reported in the outcome (defaults to file name).
            cancel_event: Cooperative cancellation signal.
            on_outcome: Called with the outcome before it is returned, and
                with the cancelled outcome if the task itself is cancelled.
            create_destination_dir: Create the destination's parent directory
                before the write check (mirrored batch sub-directories).
        """
        source_id = source_id or source_path.name
        set_item_context(source_id)
        started = time.monotonic()
        handle: JobHandle | None = None

        def _finish(outcome: ItemOutcome) -> ItemOutcome:
            set_stage(None)
            if on_outcome is not None:
                on_outcome(outcome)
            return outcome

        def _failure(reason: FailureReason, detail: str | None) -> ItemOutcome:
            return ItemOutcome.failed(
                source_id=source_id,
                source_path=source_path,
                reason=reason,
                detail=detail,
                job_id=handle.job_id if handle else None,
                duration_seconds=round(time.monotonic() - started, 3),
            )

        try:
            handle = await self._submit(source_path, cancel_event)
            set_job_context(handle.job_id)
            await self._wait_and_retrieve(
                handle, destination_path, cancel_event, create_destination_dir,
            )
        except _ItemFailed as exc:
            logger.error("Translation of %s failed (%s): %s", source_id, exc.reason, exc.detail)
            return _finish(_failure(exc.reason, exc.detail))
        except asyncio.CancelledError:
            logger.warning("Translation of %s interrupted", source_id)
            _finish(_failure("cancelled", "Task cancelled"))
            raise
        except Exception as exc:
            logger.exception("Unexpected error while translating %s", source_id)
            return _finish(_failure("internal_error", f"{type(exc).__name__}: {exc}"))

        logger.info("Translation of %s saved to: %s", source_id, destination_path)
        return _finish(
            ItemOutcome.succeeded(
                source_id=source_id,
                source_path=source_path,
                destination_path=destination_path,
                job_id=handle.job_id,
                duration_seconds=round(time.monotonic() - started, 3),
            )
        )

    async def _submit(
        self, source_path: Path, cancel_event: asyncio.Event | None,
    ) -> JobHandle:
        set_stage("check")
        try:
            check_readable(source_path)
        except LocalReadDenied as exc:
            raise _ItemFailed("local_read_denied", str(exc)) from exc

        _raise_if_cancelled(cancel_event, "Cancelled before submission")

        set_stage("submit")
        try:
            return await submit_document(
                self._client, source_path, self._target_language, self._source_language,
            )
        except LocalReadDenied as exc:
            raise _ItemFailed("local_read_denied", str(exc)) from exc
        except RemoteServiceError as exc:
            raise _ItemFailed("remote_submit_failed", str(exc)) from exc

    async def _wait_and_retrieve(
        self,
        handle: JobHandle,
        destination_path: Path,
        cancel_event: asyncio.Event | None,
        create_destination_dir: bool = False,
    ) -> None:
        set_stage("poll")
        logger.info("Translation started (job %s). Waiting for completion...", handle.job_id)
        try:
            status = await self._poller.wait_until_done(handle, cancel_event)
        except WaitExceeded as exc:
            raise _ItemFailed("wait_exceeded", str(exc)) from exc
        except JobCancelled as exc:
            raise _ItemFailed("cancelled", str(exc)) from exc
        except RemoteTransportError as exc:
            raise _ItemFailed("remote_transport_error", str(exc)) from exc
        except RemoteServiceError as exc:
            raise _ItemFailed("remote_job_failed", str(exc)) from exc

        if not status.is_success:
            detail = f"{status.status} - {status.substatus}" if status.substatus else status.status
            raise _ItemFailed("remote_job_failed", detail)

        _raise_if_cancelled(cancel_event, "Cancelled before retrieval")

        set_stage("retrieve")
        try:
            if create_destination_dir:
                _make_parent(destination_path)
            check_writable(destination_path)
        except LocalWriteDenied as exc:
            logger.warning(
                "Job %s completed but its result cannot be saved; leaving it unclaimed",
                handle.job_id,
            )
            raise _ItemFailed("local_write_denied", str(exc)) from exc

        try:
            await self._retriever.retrieve(handle, status, destination_path)
        except LocalIOError as exc:
            raise _ItemFailed("local_write_denied", str(exc)) from exc
        except RemoteServiceError as exc:
            raise _ItemFailed("remote_transport_error", str(exc)) from exc


def _raise_if_cancelled(cancel_event: asyncio.Event | None, detail: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise _ItemFailed("cancelled", detail)


def _make_parent(destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LocalWriteDenied(
            destination, f"Cannot create target directory {destination.parent}: {exc}",
        ) from exc
