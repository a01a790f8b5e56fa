"""Split a streaming response body into newline-delimited records."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

import aiohttp

from ..errors import StreamConnectionError, StreamDecodeError


DEFAULT_MAX_LINE_BYTES = 1024 * 1024


async def iter_lines(
    content: aiohttp.StreamReader,
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    url: str | None = None,
) -> AsyncIterator[bytes]:
    """
    Yield the non-empty lines of a response body as they arrive.

    Lines are split on b"\\n"; the delimiter and a trailing b"\\r" are removed
    and blank lines are skipped. A final unterminated line is still yielded
    when the body ends. The iterator cannot be restarted; once the body is
    exhausted a new request is needed.

    Args:
        content: Response body (aiohttp response.content)
        max_line_bytes: Largest accepted line; longer lines raise StreamDecodeError
        url: Stream URL, attached to connection errors

    Raises:
        StreamConnectionError: The body failed mid-read (reset, payload error, read timeout)
        StreamDecodeError: A single line exceeded max_line_bytes
    """
    buffer = bytearray()

    while True:
        try:
            chunk = await content.readany()
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError) as e:
            raise StreamConnectionError(f"Stream read failed: {e!r}", url=url) from e

        if not chunk:
            break

        buffer.extend(chunk)
        start = 0
        while True:
            end = buffer.find(b"\n", start)
            if end < 0:
                break
            if end - start > max_line_bytes:
                raise StreamDecodeError(
                    f"Stream line exceeds {max_line_bytes} bytes",
                    line=bytes(buffer[start:start + max_line_bytes]),
                )
            line = bytes(buffer[start:end]).strip()
            start = end + 1
            if line:
                yield line
        del buffer[:start]

        if len(buffer) > max_line_bytes:
            raise StreamDecodeError(
                f"Stream line exceeds {max_line_bytes} bytes",
                line=bytes(buffer[:max_line_bytes]),
            )

    tail = bytes(buffer).strip()
    if tail:
        yield tail
