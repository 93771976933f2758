# src/client/tilde_client.py — v1
"""Tilde MT REST adapter implementing BaseTranslationClient.

Uses a single httpx.AsyncClient for the lifetime of the adapter. HTTP
status codes are mapped onto the client.errors hierarchy so that callers
can tell transient failures from terminal ones.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, BinaryIO

import httpx

from doctranslator.client.base_client import BaseTranslationClient
from doctranslator.client.errors import (
    JobNotFoundError,
    RemoteAuthError,
    RemoteServiceError,
    RemoteTransportError,
)
from doctranslator.core.models import (
    DocumentStatus,
    Engine,
    JobHandle,
    LanguageDirection,
    TextTranslation,
    TextTranslationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://translate.tilde.com"
DEFAULT_PAGE_SIZE = 100

_TRANSIENT_STATUS_CODES = {408, 425, 429}


def get_httpx_timeout(timeout_s: float) -> httpx.Timeout:
    """Build an httpx.Timeout with a short connect and a generous read budget."""
    return httpx.Timeout(
        connect=min(10.0, timeout_s),
        write=timeout_s,
        read=timeout_s,
        pool=10.0,
    )


def _error_message(response: httpx.Response) -> str:
    """Extract the most useful error text from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", error))
        if error:
            return str(error)
        if "message" in body:
            return str(body["message"])
    return str(body)[:500]


def raise_for_status(response: httpx.Response) -> None:
    """Map an HTTP error response onto the RemoteServiceError hierarchy."""
    if response.is_success:
        return

    code = response.status_code
    message = f"Tilde API error ({code}): {_error_message(response)}"

    if code in (401, 403):
        raise RemoteAuthError(message, status_code=code)
    if code == 404:
        raise JobNotFoundError(message, status_code=code)
    if code in _TRANSIENT_STATUS_CODES or code >= 500:
        raise RemoteTransportError(message, status_code=code)
    raise RemoteServiceError(message, status_code=code)


class TildeClient(BaseTranslationClient):
    """Tilde machine-translation service adapter.

    Args:
        api_key: Service API key, sent in the X-API-KEY header.
        server_url: Base URL of the service.
        timeout_s: Per-request read/write timeout.
        page_size: Page size used when listing language directions.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        server_url: str = DEFAULT_SERVER_URL,
        timeout_s: float = 60.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise RemoteAuthError("API key cannot be empty")
        self._page_size = page_size
        self._http = httpx.AsyncClient(
            base_url=server_url.rstrip("/"),
            headers={"X-API-KEY": api_key, "Accept": "application/json"},
            timeout=get_httpx_timeout(timeout_s),
            transport=transport,
        )

    @property
    def provider_name(self) -> str:
        return "tilde"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise RemoteTransportError(f"{method} {path} failed: {exc}") from exc
        raise_for_status(response)
        return response

    # --- Document translation ---

    async def submit_document(
        self,
        stream: BinaryIO,
        filename: str,
        source_language: str | None,
        target_language: str,
    ) -> JobHandle:
        data = {"targetLanguage": target_language}
        if source_language:
            data["sourceLanguage"] = source_language

        logger.debug("Submitting %s (%s -> %s)", filename, source_language or "auto", target_language)
        response = await self._request(
            "POST",
            "/api/document/translate",
            data=data,
            files={"file": (filename, stream, "application/octet-stream")},
        )
        body = response.json()
        job_id = body.get("id") if isinstance(body, dict) else None
        if not job_id:
            raise RemoteServiceError(
                f"Tilde API returned no job id for {filename}", status_code=response.status_code,
            )
        return JobHandle(
            job_id=str(job_id),
            filename=filename,
            source_language=source_language,
            target_language=target_language,
        )

    async def get_status(self, handle: JobHandle) -> DocumentStatus:
        response = await self._request("GET", f"/api/document/{handle.job_id}/status")
        body = response.json()
        return DocumentStatus.from_vendor(
            str(body.get("status", "")), body.get("substatus"),
        )

    async def fetch_result(self, handle: JobHandle, sink: BinaryIO) -> None:
        path = f"/api/document/{handle.job_id}/result"
        try:
            async with self._http.stream("GET", path) as response:
                if not response.is_success:
                    await response.aread()
                    raise_for_status(response)
                async for chunk in response.aiter_bytes():
                    # OSError from the sink is a local failure; let it through
                    sink.write(chunk)
        except httpx.TransportError as exc:
            raise RemoteTransportError(f"GET {path} failed: {exc}") from exc

    # --- Pass-through listings ---

    async def list_engines(self) -> list[Engine]:
        response = await self._request("GET", "/api/engines")
        body = response.json()
        return [
            Engine(
                id=str(e.get("id", "")),
                name=e.get("name", ""),
                vendor=e.get("vendor"),
                source_languages=e.get("sourceLanguages") or [],
                target_languages=e.get("targetLanguages") or [],
                domain=e.get("domain"),
                status=e.get("status"),
                supports_term_collections=bool(e.get("supportsTermCollections", False)),
            )
            for e in body.get("engines", [])
        ]

    async def list_language_directions(self) -> AsyncIterator[LanguageDirection]:
        offset = 0
        while True:
            response = await self._request(
                "GET",
                "/api/language-directions",
                params={"offset": offset, "limit": self._page_size},
            )
            body = response.json()
            page = body.get("languageDirections", [])
            for d in page:
                yield LanguageDirection(
                    source_language=d.get("sourceLanguage", ""),
                    target_language=d.get("targetLanguage", ""),
                    domain=d.get("domain"),
                    engine_name=d.get("engineName"),
                    engine_vendor=d.get("engineVendor"),
                )
            offset += len(page)
            total = body.get("total")
            if len(page) < self._page_size or (total is not None and offset >= total):
                return

    async def translate_text(
        self,
        texts: list[str],
        source_language: str | None,
        target_language: str,
    ) -> TextTranslationResult:
        payload: dict[str, Any] = {"targetLanguage": target_language, "text": texts}
        if source_language:
            payload["sourceLanguage"] = source_language
        response = await self._request("POST", "/api/translate/text", json=payload)
        body = response.json()
        return TextTranslationResult(
            translations=[
                TextTranslation(translation=t.get("translation", ""))
                for t in body.get("translations", [])
            ],
            detected_language=body.get("detectedLanguage"),
            domain=body.get("domain"),
        )
