"""
Exceptions raised by the v20 client.

Exception hierarchy:
- V20Error (base)
  - APIError: REST call answered with an HTTP error status
  - StreamError: streaming failures
    - StreamConnectionError: stream could not be opened or was reset mid-read
    - StreamDecodeError: a line could not be decoded into the expected record
    - RemoteAPIError: the service sent an error object instead of a record

Exceptions raised by a caller's stream handler are never wrapped; they
propagate out of the stream call unchanged.
"""

from __future__ import annotations

import json
from typing import Any, Optional


class V20Error(Exception):
    """Base exception for all v20 client errors."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class APIError(V20Error):
    """Raised when a REST request is answered with status >= 400."""

    def __init__(
        self,
        status: int,
        *,
        url: Optional[str] = None,
        error_message: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.status = status
        self.url = url
        self.error_message = error_message
        self.error_code = error_code
        details: dict[str, Any] = {"status": status}
        if url:
            details["url"] = url
        if error_code:
            details["error_code"] = error_code
        super().__init__(error_message or f"HTTP {status}", details=details)


class StreamError(V20Error):
    """Base exception for streaming failures. Always terminal for the stream."""


class StreamConnectionError(StreamError):
    """Raised when a stream cannot be opened or the connection fails mid-read."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        self.url = url
        self.status = status
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if status is not None:
            details["status"] = status
        super().__init__(message, details=details)


class StreamDecodeError(StreamError):
    """Raised when a non-heartbeat line is not a valid record for the stream."""

    def __init__(self, message: str, *, line: Optional[bytes] = None) -> None:
        self.line = line
        details: dict[str, Any] = {}
        if line is not None:
            details["line"] = _preview(line)
        super().__init__(message, details=details)


class RemoteAPIError(StreamError):
    """Raised when the service sends an error object in place of a record."""

    def __init__(self, message: str, *, line: Optional[bytes] = None) -> None:
        self.message = message
        self.line = line
        super().__init__(message)


def _preview(line: bytes, limit: int = 200) -> str:
    text = line.decode("utf-8", errors="replace")
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def error_fields(body: bytes) -> tuple[Optional[str], Optional[str]]:
    """Pull (errorMessage, errorCode) out of an error response body, if it is JSON."""
    if not body:
        return None, None
    try:
        payload = json.loads(body)
    except ValueError:
        text = body.decode("utf-8", errors="replace").strip()
        return (text or None), None

    if not isinstance(payload, dict):
        return None, None
    message = payload.get("errorMessage")
    code = payload.get("errorCode")
    return (
        message if isinstance(message, str) else None,
        str(code) if code is not None else None,
    )
