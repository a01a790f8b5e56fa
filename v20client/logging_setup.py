"""Logging configuration and HTTP request/response tracing."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import aiohttp


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

http_logger = logging.getLogger("v20client.http")


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging the way the CLI and applications expect."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


async def _on_request_start(
    session: aiohttp.ClientSession,
    ctx: SimpleNamespace,
    params: aiohttp.TraceRequestStartParams,
) -> None:
    http_logger.debug(f"Request: {params.method} {params.url}")


async def _on_request_end(
    session: aiohttp.ClientSession,
    ctx: SimpleNamespace,
    params: aiohttp.TraceRequestEndParams,
) -> None:
    http_logger.debug(
        f"Response: {params.method} {params.url} -> {params.response.status} {params.response.reason}"
    )


async def _on_request_exception(
    session: aiohttp.ClientSession,
    ctx: SimpleNamespace,
    params: aiohttp.TraceRequestExceptionParams,
) -> None:
    http_logger.debug(f"Request failed: {params.method} {params.url}: {params.exception!r}")


def http_trace_config() -> aiohttp.TraceConfig:
    """Build a TraceConfig that logs every request and response at DEBUG."""
    trace_config = aiohttp.TraceConfig()
    trace_config.on_request_start.append(_on_request_start)
    trace_config.on_request_end.append(_on_request_end)
    trace_config.on_request_exception.append(_on_request_exception)
    return trace_config
