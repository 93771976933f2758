# src/client/errors.py — v1
"""Remote translation-service errors.

Transient failures (RemoteTransportError) may be retried by the caller;
every other RemoteServiceError is terminal for the request that raised it.
"""

from __future__ import annotations


class RemoteServiceError(Exception):
    """The remote service rejected or failed a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RemoteTransportError(RemoteServiceError):
    """Network failure, timeout, throttling or 5xx: safe to retry."""


class RemoteAuthError(RemoteServiceError):
    """API key missing, invalid or not authorised for the request."""


class JobNotFoundError(RemoteServiceError):
    """The service does not know the requested job."""
