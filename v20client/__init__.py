"""Async client for the OANDA v20 REST and streaming API."""

from .config import Settings, get_settings
from .connection import Connection
from .errors import (
    APIError,
    RemoteAPIError,
    StreamConnectionError,
    StreamDecodeError,
    StreamError,
    V20Error,
)
from .streaming import StreamingConnection
from .version import __version__

__all__ = [
    "Settings",
    "get_settings",
    "Connection",
    "StreamingConnection",
    "V20Error",
    "APIError",
    "StreamError",
    "StreamConnectionError",
    "StreamDecodeError",
    "RemoteAPIError",
    "__version__",
]
