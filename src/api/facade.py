# src/api/facade.py — v3
"""Public API facade: entry points for single and bulk document translation.

Usage:
    from doctranslator.api.facade import translate_document, translate_directory
    outcome = await translate_document(Path("in.txt"), Path("out.txt"))
    summary = await translate_directory(Path("docs"), Path("translated"))

When no client is passed, one TildeClient is created from settings,
shared by every item of the call, and closed afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator

from doctranslator.batch.orchestrator import BatchOrchestrator
from doctranslator.batch.scanner import BatchScanner
from doctranslator.config.settings import Settings
from doctranslator.jobs.poller import PollingConfig
from doctranslator.jobs.workflow import SingleItemWorkflow

if TYPE_CHECKING:
    from doctranslator.batch.models import BatchSummary
    from doctranslator.batch.orchestrator import OutcomeCollector
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.core.models import ItemOutcome

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> BaseTranslationClient:
    """Instantiate the translation-service client configured in settings."""
    from doctranslator.client.tilde_client import TildeClient

    logger.debug("Creating Tilde client for %s", settings.tilde_server_url)
    return TildeClient(
        api_key=settings.tilde_api_key,
        server_url=settings.tilde_server_url,
        timeout_s=settings.request_timeout_s,
    )


def build_workflow(client: BaseTranslationClient, settings: Settings) -> SingleItemWorkflow:
    """Wire a SingleItemWorkflow from settings."""
    return SingleItemWorkflow(
        client,
        target_language=settings.target_language,
        source_language=settings.source_language_or_auto,
        polling=PollingConfig.from_settings(settings),
    )


@asynccontextmanager
async def _client_scope(
    client: BaseTranslationClient | None, settings: Settings,
) -> AsyncIterator[BaseTranslationClient]:
    """Yield the caller's client, or a fresh one that is closed on exit."""
    if client is not None:
        yield client
        return
    owned = create_client(settings)
    try:
        yield owned
    finally:
        await owned.aclose()


async def translate_document(
    source: Path,
    destination: Path,
    settings: Settings | None = None,
    client: BaseTranslationClient | None = None,
    cancel_event: asyncio.Event | None = None,
) -> ItemOutcome:
    """Translate one document and write the result to ``destination``.

    Never raises for item-level failures; inspect the returned outcome.
    """
    settings = settings or Settings()
    logger.info(
        "Translating document: %s to %s (%s->%s)",
        source, destination, settings.source_language_or_auto or "auto", settings.target_language,
    )
    async with _client_scope(client, settings) as active:
        workflow = build_workflow(active, settings)
        return await workflow.run(source, destination, cancel_event=cancel_event)


async def translate_directory(
    source_dir: Path,
    target_dir: Path,
    settings: Settings | None = None,
    client: BaseTranslationClient | None = None,
    cancel_event: asyncio.Event | None = None,
    collector: OutcomeCollector | None = None,
    concurrency: int | None = None,
    pattern: str | None = None,
    recursive: bool | None = None,
) -> BatchSummary:
    """Translate every matching document of ``source_dir`` into ``target_dir``.

    Args:
        source_dir: Directory holding source documents.
        target_dir: Existing directory receiving ``<stem>_translated<ext>`` files.
        settings: Global settings. Loaded from .env if None.
        client: Shared client; created from settings if None.
        cancel_event: Cooperative cancellation for the whole batch.
        collector: Outcome store surviving task cancellation.
        concurrency: Overrides ``settings.batch_concurrency``.
        pattern: Overrides ``settings.batch_pattern``.
        recursive: Overrides ``settings.batch_recursive``.

    Raises:
        SourceEnumerationError: If the directories cannot be used at all.
        ValueError: If ``concurrency`` is below 1.
    """
    settings = settings or Settings()
    scanner = BatchScanner(
        pattern=pattern or settings.batch_pattern,
        recursive=settings.batch_recursive if recursive is None else recursive,
        suffix=settings.destination_suffix,
    )
    async with _client_scope(client, settings) as active:
        orchestrator = BatchOrchestrator(
            build_workflow(active, settings),
            scanner,
            concurrency=settings.batch_concurrency if concurrency is None else concurrency,
        )
        return await orchestrator.run(
            source_dir, target_dir, cancel_event=cancel_event, collector=collector,
        )
