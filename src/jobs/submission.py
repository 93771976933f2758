# src/jobs/submission.py — v1
"""Document submission and the local read-access pre-check."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from doctranslator.jobs.errors import LocalReadDenied

if TYPE_CHECKING:
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.core.models import JobHandle

logger = logging.getLogger(__name__)


def check_readable(path: Path) -> None:
    """Verify the source can be opened for reading.

    Raises:
        LocalReadDenied: If the file is missing, is not a regular file,
            or cannot be opened.
    """
    if not path.exists():
        raise LocalReadDenied(path, f"Source document not found: {path}")
    if not path.is_file():
        raise LocalReadDenied(path, f"Source is not a file: {path}")
    try:
        with path.open("rb"):
            pass
    except PermissionError as exc:
        raise LocalReadDenied(path, f"No read permissions for source file: {path}") from exc
    except OSError as exc:
        raise LocalReadDenied(path, f"Cannot open source file {path}: {exc}") from exc


async def submit_document(
    client: BaseTranslationClient,
    source_path: Path,
    target_language: str,
    source_language: str | None = None,
) -> JobHandle:
    """Submit one document and return its job handle.

    Every call creates a new remote job; callers must not retry blindly.

    Raises:
        LocalReadDenied: If the source cannot be opened.
        RemoteServiceError: If the service rejects the submission.
    """
    try:
        stream = source_path.open("rb")
    except OSError as exc:
        raise LocalReadDenied(source_path, f"Cannot open source file {source_path}: {exc}") from exc

    with stream:
        handle = await client.submit_document(
            stream, source_path.name, source_language, target_language,
        )

    logger.info(
        "Submitted %s as job %s (%s -> %s)",
        source_path.name, handle.job_id, source_language or "auto", target_language,
    )
    return handle
