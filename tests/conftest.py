# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a scriptable in-memory translation client, fast polling
configuration and sample source directories. No network access.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, AsyncIterator, BinaryIO, Callable

import pytest

from doctranslator.client.base_client import BaseTranslationClient
from doctranslator.client.errors import JobNotFoundError
from doctranslator.core.models import (
    DocumentStatus,
    Engine,
    JobHandle,
    LanguageDirection,
    TextTranslation,
    TextTranslationResult,
)
from doctranslator.jobs.poller import PollingConfig

COMPLETED = DocumentStatus(status="completed")
PROCESSING = DocumentStatus(status="processing")
QUEUED = DocumentStatus(status="queued")

# A script step is either a status snapshot or an exception to raise.
ScriptStep = DocumentStatus | Exception


class FakeTranslationClient(BaseTranslationClient):
    """In-memory client with per-file status scripts and call accounting.

    Each submitted job replays the script registered for its file name
    (or ``default_script``); the last step repeats forever. Every remote
    call is counted and the peak number of concurrent calls is tracked.
    """

    def __init__(
        self,
        scripts: dict[str, list[ScriptStep]] | None = None,
        default_script: list[ScriptStep] | None = None,
        submit_errors: dict[str, Exception] | None = None,
        fetch_errors: dict[str, Exception] | None = None,
        result: bytes = b"translated text",
        latency_s: float = 0.0,
    ) -> None:
        self.scripts = scripts or {}
        self.default_script = default_script or [COMPLETED]
        self.submit_errors = submit_errors or {}
        self.fetch_errors = fetch_errors or {}
        self.result = result
        self.latency_s = latency_s

        self.submit_calls: list[str] = []
        self.status_calls: list[str] = []
        self.fetch_calls: list[str] = []
        self.submitted_bytes: dict[str, bytes] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

        self._jobs: dict[str, list[ScriptStep]] = {}
        self._filenames: dict[str, str] = {}
        self._counter = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    async def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.latency_s)

    def _exit(self) -> None:
        self.in_flight -= 1

    async def submit_document(
        self,
        stream: BinaryIO,
        filename: str,
        source_language: str | None,
        target_language: str,
    ) -> JobHandle:
        await self._enter()
        try:
            self.submit_calls.append(filename)
            if filename in self.submit_errors:
                raise self.submit_errors[filename]
            self._counter += 1
            job_id = f"job-{self._counter}"
            self.submitted_bytes[job_id] = stream.read()
            self._jobs[job_id] = list(self.scripts.get(filename, self.default_script))
            self._filenames[job_id] = filename
            return JobHandle(
                job_id=job_id,
                filename=filename,
                source_language=source_language,
                target_language=target_language,
            )
        finally:
            self._exit()

    async def get_status(self, handle: JobHandle) -> DocumentStatus:
        await self._enter()
        try:
            self.status_calls.append(handle.job_id)
            script = self._jobs.get(handle.job_id)
            if script is None:
                raise JobNotFoundError(f"Unknown job {handle.job_id}", status_code=404)
            step = script.pop(0) if len(script) > 1 else script[0]
            if isinstance(step, Exception):
                raise step
            return step
        finally:
            self._exit()

    async def fetch_result(self, handle: JobHandle, sink: BinaryIO) -> None:
        await self._enter()
        try:
            self.fetch_calls.append(handle.job_id)
            filename = self._filenames.get(handle.job_id, handle.filename)
            half = len(self.result) // 2
            sink.write(self.result[:half])
            if filename in self.fetch_errors:
                raise self.fetch_errors[filename]
            sink.write(self.result[half:])
        finally:
            self._exit()

    async def list_engines(self) -> list[Engine]:
        return [Engine(id="e1", name="General EN-LV", vendor="Tilde")]

    async def list_language_directions(self) -> AsyncIterator[LanguageDirection]:
        for src, trg in (("en", "lv"), ("lv", "en")):
            yield LanguageDirection(source_language=src, target_language=trg)

    async def translate_text(
        self,
        texts: list[str],
        source_language: str | None,
        target_language: str,
    ) -> TextTranslationResult:
        return TextTranslationResult(
            translations=[TextTranslation(translation=f"[{target_language}] {t}") for t in texts],
            detected_language=source_language or "en",
        )

    async def aclose(self) -> None:
        self.closed = True


# === FIXTURES ===


@pytest.fixture
def make_client() -> Callable[..., FakeTranslationClient]:
    """Factory for scripted fake clients."""

    def _make(**kwargs: Any) -> FakeTranslationClient:
        return FakeTranslationClient(**kwargs)

    return _make


@pytest.fixture
def fake_client() -> FakeTranslationClient:
    """Client whose jobs complete on the first poll."""
    return FakeTranslationClient()


@pytest.fixture
def fast_polling() -> PollingConfig:
    """Polling without delays, bounded to a handful of attempts."""
    return PollingConfig(
        initial_delay_s=0.0,
        max_delay_s=0.0,
        backoff_factor=1.0,
        max_attempts=5,
        timeout_s=None,
        transient_retries=2,
    )


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Directory with three .txt documents and one ignored file."""
    src = tmp_path / "source"
    src.mkdir()
    for name in ("c.txt", "a.txt", "b.txt"):
        (src / name).write_text(f"content of {name}", encoding="utf-8")
    (src / "notes.md").write_text("# not a txt", encoding="utf-8")
    return src


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Empty destination directory."""
    dst = tmp_path / "target"
    dst.mkdir()
    return dst


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Single readable source document."""
    f = tmp_path / "doc.txt"
    f.write_text("This is example document\nTo be translated.", encoding="utf-8")
    return f
