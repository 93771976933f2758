# src/batch/scanner.py — v3
"""Batch scanner: source discovery and destination naming.

Lists the documents of a source directory matching a glob pattern, in
lexicographic order so that batch summaries are reproducible, and
derives each destination as ``<stem><suffix><ext>`` under the target
directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from doctranslator.batch.models import BatchItem

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "*.txt"
DEFAULT_SUFFIX = "_translated"


class SourceEnumerationError(Exception):
    """The source collection could not be listed at all."""


def derive_destination(
    source_path: Path,
    source_root: Path,
    target_root: Path,
    suffix: str = DEFAULT_SUFFIX,
) -> Path:
    """Map ``source_root/a/b.txt`` to ``target_root/a/b<suffix>.txt``."""
    relative = source_path.relative_to(source_root)
    name = f"{source_path.stem}{suffix}{source_path.suffix}"
    return target_root / relative.parent / name


class BatchScanner:
    """Discover source documents for a batch run.

    Args:
        pattern: Glob pattern matched against file names.
        recursive: If True, scan subdirectories too.
        suffix: Appended to the source stem to name the destination.
    """

    def __init__(
        self,
        pattern: str = DEFAULT_PATTERN,
        recursive: bool = False,
        suffix: str = DEFAULT_SUFFIX,
    ) -> None:
        self._pattern = pattern
        self._recursive = recursive
        self._suffix = suffix

    def scan(self, source_root: Path, target_root: Path) -> list[BatchItem]:
        """List matching documents in deterministic order.

        Returns:
            One BatchItem per matching file (possibly empty).

        Raises:
            SourceEnumerationError: If either directory is missing or the
                source directory cannot be listed.
        """
        if not source_root.is_dir():
            raise SourceEnumerationError(f"Source directory does not exist: {source_root}")
        if not target_root.is_dir():
            raise SourceEnumerationError(f"Target directory does not exist: {target_root}")

        # glob() silently skips unreadable directories; list the root explicitly
        pattern_fn = source_root.rglob if self._recursive else source_root.glob
        try:
            with os.scandir(source_root):
                pass
            paths = sorted(p for p in pattern_fn(self._pattern) if p.is_file())
        except OSError as exc:
            raise SourceEnumerationError(f"Cannot list source directory {source_root}: {exc}") from exc

        items: list[BatchItem] = []
        for path in paths:
            destination = derive_destination(path, source_root, target_root, self._suffix)
            items.append(
                BatchItem(
                    source_id=path.relative_to(source_root).as_posix(),
                    source_path=path,
                    destination_path=destination,
                    create_destination_dir=destination.parent != target_root,
                )
            )

        logger.info(
            "Scanned %s: found %d documents matching %r (recursive=%s)",
            source_root, len(items), self._pattern, self._recursive,
        )
        return items
