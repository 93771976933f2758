# src/jobs/poller.py — v1
"""Status poller: wait for a remote job to reach a terminal status.

Poll, return on a terminal snapshot, otherwise sleep with capped
exponential backoff and poll again. Two bounds apply (attempt count and
wall-clock timeout); exhausting either raises WaitExceeded. Transient
transport errors are retried a limited number of consecutive times;
any other remote error aborts at once.

The wait between polls takes an optional asyncio.Event so that external
cancellation interrupts the sleep instead of waiting it out.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from doctranslator.client.errors import RemoteTransportError
from doctranslator.jobs.errors import JobCancelled, WaitExceeded

if TYPE_CHECKING:
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.config.settings import Settings
    from doctranslator.core.models import DocumentStatus, JobHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollingConfig:
    """Wait policy for one job."""

    initial_delay_s: float = 2.0
    max_delay_s: float = 15.0
    backoff_factor: float = 1.5
    max_attempts: int = 240
    timeout_s: float | None = 1800.0
    transient_retries: int = 3
    jitter: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> PollingConfig:
        return cls(
            initial_delay_s=settings.poll_initial_delay_s,
            max_delay_s=settings.poll_max_delay_s,
            backoff_factor=settings.poll_backoff_factor,
            max_attempts=settings.poll_max_attempts,
            timeout_s=settings.poll_timeout_s,
            transient_retries=settings.poll_transient_retries,
        )


def compute_delay(config: PollingConfig, attempt: int) -> float:
    """Delay before the poll following ``attempt`` (0-based)."""
    delay = min(
        config.initial_delay_s * (config.backoff_factor ** attempt),
        config.max_delay_s,
    )
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def cancellable_sleep(delay_s: float, cancel_event: asyncio.Event | None = None) -> None:
    """Sleep for ``delay_s`` unless ``cancel_event`` is set first.

    Raises:
        JobCancelled: If the event is (or becomes) set.
    """
    if cancel_event is None:
        await asyncio.sleep(delay_s)
        return
    if cancel_event.is_set():
        raise JobCancelled("Cancelled before wait")
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay_s)
    except asyncio.TimeoutError:
        return
    raise JobCancelled("Cancelled during wait")


class StatusPoller:
    """Poll a job until it reaches completed, failed or cancelled.

    Args:
        client: Shared translation-service client.
        config: Wait policy.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        client: BaseTranslationClient,
        config: PollingConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._config = config or PollingConfig()
        self._clock = clock

    @property
    def config(self) -> PollingConfig:
        return self._config

    async def wait_until_done(
        self,
        handle: JobHandle,
        cancel_event: asyncio.Event | None = None,
    ) -> DocumentStatus:
        """Return the first terminal status snapshot observed for ``handle``.

        Raises:
            WaitExceeded: Attempt or time bound exhausted.
            JobCancelled: ``cancel_event`` was set.
            RemoteTransportError: Too many consecutive transient failures.
            RemoteServiceError: Terminal service error (unknown job, auth).
        """
        config = self._config
        started = self._clock()
        attempts = 0
        transient_failures = 0
        backoff_step = 0
        last_status: DocumentStatus | None = None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelled(f"Cancelled while waiting on job {handle.job_id}")

            attempts += 1
            try:
                status = await self._client.get_status(handle)
            except RemoteTransportError as exc:
                transient_failures += 1
                if transient_failures > config.transient_retries:
                    logger.error(
                        "Job %s: giving up after %d consecutive transport errors",
                        handle.job_id, transient_failures,
                    )
                    raise
                logger.warning(
                    "Job %s: status query failed (%d/%d), retrying: %s",
                    handle.job_id, transient_failures, config.transient_retries, exc,
                )
            else:
                transient_failures = 0
                last_status = status
                if status.is_terminal:
                    logger.debug(
                        "Job %s reached %s after %d polls",
                        handle.job_id, status.status, attempts,
                    )
                    return status
                logger.debug(
                    "Job %s is %s%s",
                    handle.job_id, status.status,
                    f" ({status.substatus})" if status.substatus else "",
                )

            delay = compute_delay(config, backoff_step)
            backoff_step += 1
            elapsed = self._clock() - started

            if attempts >= config.max_attempts or (
                config.timeout_s is not None and elapsed + delay > config.timeout_s
            ):
                raise WaitExceeded(handle, attempts, elapsed, last_status)

            await cancellable_sleep(delay, cancel_event)
