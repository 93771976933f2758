# src/client/base_client.py — v1
"""Abstract translation-service client interface.

One instance is shared read-only by every workflow of a run; it is
passed explicitly, never looked up globally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, BinaryIO

from doctranslator.core.models import (
    DocumentStatus,
    Engine,
    JobHandle,
    LanguageDirection,
    TextTranslationResult,
)


class BaseTranslationClient(ABC):
    """Unified interface for remote translation services."""

    @abstractmethod
    async def submit_document(
        self,
        stream: BinaryIO,
        filename: str,
        source_language: str | None,
        target_language: str,
    ) -> JobHandle:
        """Create one remote document-translation job. Not idempotent."""

    @abstractmethod
    async def get_status(self, handle: JobHandle) -> DocumentStatus:
        """Return a fresh status snapshot for the job."""

    @abstractmethod
    async def fetch_result(self, handle: JobHandle, sink: BinaryIO) -> None:
        """Stream the translated document into a writable binary sink."""

    @abstractmethod
    async def list_engines(self) -> list[Engine]:
        """List available translation engines."""

    @abstractmethod
    def list_language_directions(self) -> AsyncIterator[LanguageDirection]:
        """Lazily iterate over all supported language directions."""

    @abstractmethod
    async def translate_text(
        self,
        texts: list[str],
        source_language: str | None,
        target_language: str,
    ) -> TextTranslationResult:
        """Translate plain text segments (stateless)."""

    async def aclose(self) -> None:
        """Release transport resources."""

    async def __aenter__(self) -> BaseTranslationClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Service identifier (e.g. tilde)."""
