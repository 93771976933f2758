# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for service endpoint, polling bounds, batch
behaviour and logging. Every field can be overridden by an environment
variable of the same name (case-insensitive).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Translation service ===
    tilde_api_key: str = ""
    tilde_server_url: str = "https://translate.tilde.com"
    request_timeout_s: float = 60.0

    # === Language pair ===
    # Empty source language means auto-detect on the service side.
    source_language: str = "en"
    target_language: str = "lv"

    # === Status polling ===
    poll_initial_delay_s: float = 2.0
    poll_max_delay_s: float = 15.0
    poll_backoff_factor: float = 1.5
    poll_max_attempts: int = 240
    poll_timeout_s: float | None = 1800.0
    poll_transient_retries: int = 3

    # === Batch ===
    batch_concurrency: int = 4
    batch_pattern: str = "*.txt"
    batch_recursive: bool = False
    destination_suffix: str = "_translated"

    # === Single-document defaults ===
    sample_source_path: Path = Path("./Document/ExampleDocument.txt")
    sample_destination_path: Path = Path("./Document/ExampleDocumentResult.txt")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_concurrency", "poll_max_attempts")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("poll_initial_delay_s", "poll_max_delay_s", "poll_transient_retries")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("poll_backoff_factor")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError("poll_backoff_factor must be >= 1.0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.poll_max_delay_s < self.poll_initial_delay_s:
            errors.append("POLL_MAX_DELAY_S must be >= POLL_INITIAL_DELAY_S")

        if self.poll_timeout_s is not None and self.poll_timeout_s <= 0:
            errors.append("POLL_TIMEOUT_S must be > 0 when set")

        if not self.target_language.strip():
            errors.append("TARGET_LANGUAGE must not be empty")
        elif self.source_language.strip().lower() == self.target_language.strip().lower():
            errors.append("SOURCE_LANGUAGE and TARGET_LANGUAGE must differ")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def source_language_or_auto(self) -> str | None:
        """Source language, or None when the service should auto-detect."""
        return self.source_language.strip() or None


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
