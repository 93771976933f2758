# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

Other modules import these types from here instead of redefining them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

# === JOB STATE ===

TranslationStatus = Literal["queued", "processing", "completed", "failed", "cancelled"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed", "cancelled"})

_KNOWN_STATUSES: frozenset[str] = frozenset(get_args(TranslationStatus))


class JobHandle(BaseModel):
    """Opaque token for one accepted remote translation job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    filename: str
    source_language: str | None = None  # None = auto-detect
    target_language: str
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DocumentStatus(BaseModel):
    """Snapshot of remote job progress as returned by one status query."""

    status: TranslationStatus
    substatus: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_success(self) -> bool:
        return self.status == "completed"

    @classmethod
    def from_vendor(cls, raw_status: str, substatus: str | None = None) -> DocumentStatus:
        """Normalize a vendor status string.

        Unknown values are treated as still running; the raw value is kept
        in ``substatus`` so it shows up in logs.
        """
        normalized = (raw_status or "").strip().lower()
        if normalized == "canceled":
            normalized = "cancelled"
        if normalized in _KNOWN_STATUSES:
            return cls(status=normalized, substatus=substatus)  # type: ignore[arg-type]
        detail = raw_status if substatus is None else f"{raw_status}: {substatus}"
        return cls(status="processing", substatus=detail)


# === ITEM OUTCOMES ===

FailureReason = Literal[
    "local_read_denied",
    "local_write_denied",
    "remote_submit_failed",
    "remote_job_failed",
    "remote_transport_error",
    "wait_exceeded",
    "cancelled",
    "internal_error",
]


class ItemOutcome(BaseModel):
    """Final recorded result of processing one source document."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    source_path: Path
    success: bool
    destination_path: Path | None = None
    reason: FailureReason | None = None
    detail: str | None = None
    job_id: str | None = None
    duration_seconds: float = 0.0

    @classmethod
    def succeeded(
        cls,
        source_id: str,
        source_path: Path,
        destination_path: Path,
        job_id: str | None = None,
        duration_seconds: float = 0.0,
    ) -> ItemOutcome:
        return cls(
            source_id=source_id,
            source_path=source_path,
            success=True,
            destination_path=destination_path,
            job_id=job_id,
            duration_seconds=duration_seconds,
        )

    @classmethod
    def failed(
        cls,
        source_id: str,
        source_path: Path,
        reason: FailureReason,
        detail: str | None = None,
        job_id: str | None = None,
        duration_seconds: float = 0.0,
    ) -> ItemOutcome:
        return cls(
            source_id=source_id,
            source_path=source_path,
            success=False,
            reason=reason,
            detail=detail,
            job_id=job_id,
            duration_seconds=duration_seconds,
        )

    def describe(self) -> str:
        """One human-readable outcome line."""
        if self.success:
            return f"Translation of {self.source_id} saved to: {self.destination_path}"
        line = f"Translation of {self.source_id} failed ({self.reason})"
        if self.detail:
            line += f" - {self.detail}"
        return line


# === PASS-THROUGH SERVICE MODELS ===


class Engine(BaseModel):
    """Machine translation engine offered by the service."""

    id: str
    name: str
    vendor: str | None = None
    source_languages: list[str] = Field(default_factory=list)
    target_languages: list[str] = Field(default_factory=list)
    domain: str | None = None
    status: str | None = None
    supports_term_collections: bool = False


class LanguageDirection(BaseModel):
    """One source→target pair served by a specific engine."""

    source_language: str
    target_language: str
    domain: str | None = None
    engine_name: str | None = None
    engine_vendor: str | None = None


class TextTranslation(BaseModel):
    """One translated segment."""

    translation: str


class TextTranslationResult(BaseModel):
    """Result of a stateless text translation request."""

    translations: list[TextTranslation] = Field(default_factory=list)
    detected_language: str | None = None
    domain: str | None = None
