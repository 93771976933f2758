# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

Runs the real TildeClient over httpx.MockTransport against an in-memory
service that keeps per-job state, so the full submit → poll → retrieve
path is exercised without network access.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

import httpx
import pytest
import pytest_asyncio

from doctranslator.client.tilde_client import TildeClient
from doctranslator.config.settings import Settings

API_KEY = "integration-key"
SERVER_URL = "https://mt.integration.test"

_FILENAME_RE = re.compile(rb'filename="([^"]+)"')
_PART_RE = re.compile(rb'filename="[^"]+"\r\nContent-Type: [^\r]+\r\n\r\n(.*?)\r\n--', re.DOTALL)


@dataclass
class _Job:
    filename: str
    content: bytes
    target_language: str
    progress: list[str] = field(default_factory=lambda: ["Queued", "Processing", "Completed"])
    substatus: str | None = None


class FakeTildeService:
    """In-memory document translation service.

    Each job answers its status queries with the next entry of its
    progress list; the last entry repeats. Documents containing
    ``FAIL`` end in ``Failed``; documents containing ``SLOW`` never
    leave ``Processing``.
    """

    def __init__(self) -> None:
        self.jobs: dict[str, _Job] = {}
        self.requests: list[tuple[str, str]] = []
        self.outage_remaining = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        if request.headers.get("X-API-KEY") != API_KEY:
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        if request.method == "POST" and path == "/api/document/translate":
            return self._submit(request)
        if request.method == "POST" and path == "/api/translate/text":
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "translations": [{"translation": t[::-1]} for t in body["text"]],
                "detectedLanguage": body.get("sourceLanguage", "en"),
            })
        if path == "/api/engines":
            return httpx.Response(200, json={"engines": [{"id": "e1", "name": "General"}]})

        match = re.fullmatch(r"/api/document/([^/]+)/(status|result)", path)
        if match is None:
            return httpx.Response(404, json={"message": f"No route {path}"})
        job = self.jobs.get(match.group(1))
        if job is None:
            return httpx.Response(404, json={"message": "Job not found"})

        if match.group(2) == "status":
            if self.outage_remaining > 0:
                self.outage_remaining -= 1
                return httpx.Response(503, json={"message": "Service unavailable"})
            state = job.progress.pop(0) if len(job.progress) > 1 else job.progress[0]
            return httpx.Response(200, json={"status": state, "substatus": job.substatus})

        if job.progress[-1] != "Completed" or len(job.progress) > 1:
            return httpx.Response(409, json={"message": "Job not completed"})
        return httpx.Response(200, content=f"[{job.target_language}] ".encode() + job.content.upper())

    def _submit(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        name = _FILENAME_RE.search(body)
        part = _PART_RE.search(body)
        if name is None or part is None:
            return httpx.Response(400, json={"message": "Missing file"})
        target = re.search(rb'name="targetLanguage"\r\n\r\n([^\r]+)', body)
        job_id = f"doc-{len(self.jobs) + 1}"
        job = _Job(
            filename=name.group(1).decode(),
            content=part.group(1),
            target_language=target.group(1).decode() if target else "?",
        )
        if b"FAIL" in job.content:
            job.progress = ["Queued", "Failed"]
            job.substatus = "unsupported content"
        elif b"SLOW" in job.content:
            job.progress = ["Processing"]
        self.jobs[job_id] = job
        return httpx.Response(200, json={"id": job_id})


@pytest.fixture
def service() -> FakeTildeService:
    return FakeTildeService()


@pytest_asyncio.fixture
async def tilde_client(service: FakeTildeService):
    client = TildeClient(api_key=API_KEY, server_url=SERVER_URL, transport=service.transport())
    yield client
    await client.aclose()


@pytest.fixture
def int_settings() -> Settings:
    """Settings with instant polling for integration runs."""
    return Settings(
        _env_file=None,
        tilde_api_key=API_KEY,
        tilde_server_url=SERVER_URL,
        poll_initial_delay_s=0.0,
        poll_max_delay_s=0.0,
        poll_backoff_factor=1.0,
        poll_max_attempts=10,
        poll_timeout_s=None,
        poll_transient_retries=2,
        batch_concurrency=2,
    )


@pytest.fixture
def make_tilde_client(service: FakeTildeService):
    """Factory for clients bound to the in-memory service."""

    def _make(api_key: str = API_KEY) -> TildeClient:
        return TildeClient(api_key=api_key, server_url=SERVER_URL, transport=service.transport())

    return _make
