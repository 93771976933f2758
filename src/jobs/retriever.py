# src/jobs/retriever.py — v1
"""Result retriever: stream a completed job's artifact to disk.

The artifact is written to a hidden temporary file next to the
destination and renamed over it only once the download finished, so a
partially written destination is never visible.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from doctranslator.jobs.errors import (
    LocalWriteDenied,
    LocalWriteFailed,
    RetrievalNotAllowed,
)

if TYPE_CHECKING:
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.core.models import DocumentStatus, JobHandle

logger = logging.getLogger(__name__)


def check_writable(destination: Path) -> None:
    """Verify the destination's directory exists and accepts new files.

    Raises:
        LocalWriteDenied: If the directory is missing or not writable, or
            the destination exists and is not a writable regular file.
    """
    parent = destination.parent
    if not parent.is_dir():
        raise LocalWriteDenied(
            destination, f"Directory for target document does not exist: {parent}",
        )
    if not os.access(parent, os.W_OK | os.X_OK):
        raise LocalWriteDenied(
            destination, f"No write permissions for target directory: {parent}",
        )
    if destination.exists() and (
        not destination.is_file() or not os.access(destination, os.W_OK)
    ):
        raise LocalWriteDenied(
            destination, f"No write permissions for target file: {destination}",
        )


class ResultRetriever:
    """Download translated documents for completed jobs."""

    def __init__(self, client: BaseTranslationClient) -> None:
        self._client = client

    async def retrieve(
        self,
        handle: JobHandle,
        status: DocumentStatus,
        destination: Path,
    ) -> Path:
        """Write the translated document of ``handle`` to ``destination``.

        Args:
            handle: Job whose artifact should be downloaded.
            status: Last observed status; must be ``completed``.
            destination: Final path of the translated document.

        Returns:
            The destination path.

        Raises:
            RetrievalNotAllowed: ``status`` is not ``completed``.
            LocalWriteDenied: Permission error while writing.
            LocalWriteFailed: Any other local write error.
            RemoteServiceError: Download failed on the service side.
        """
        if not status.is_success:
            raise RetrievalNotAllowed(
                f"Job {handle.job_id} is {status.status}; only completed jobs can be retrieved"
            )

        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=destination.parent, prefix=f".{destination.name}.", suffix=".part",
            )
        except PermissionError as exc:
            raise LocalWriteDenied(destination, f"No write permissions for {destination.parent}") from exc
        except OSError as exc:
            raise LocalWriteFailed(destination, f"Cannot create file in {destination.parent}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as sink:
                await self._client.fetch_result(handle, sink)
            os.replace(tmp_path, destination)
        except PermissionError as exc:
            raise LocalWriteDenied(destination, f"No write permissions for target file: {destination}") from exc
        except OSError as exc:
            raise LocalWriteFailed(destination, f"Failed writing {destination}: {exc}") from exc
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.info("Job %s saved to %s", handle.job_id, destination)
        return destination
