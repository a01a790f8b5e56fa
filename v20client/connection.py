"""Authenticated REST transport for the OANDA v20 API."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp

from .config import Settings
from .errors import APIError, error_fields
from .logging_setup import http_trace_config
from .streaming.client import StreamingConnection


logger = logging.getLogger(__name__)


class Connection:
    """
    A connection to the v20 REST API for one account.

    Owns an aiohttp session unless one is supplied. The session is created
    lazily on first use, so a Connection can be built outside a running loop.
    Safe to share between tasks.
    """

    def __init__(
        self,
        account_id: str,
        token: str,
        settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize a connection.

        Args:
            account_id: v20 account ID (e.g., "101-004-1234567-001")
            token: API access token
            settings: Optional settings; defaults are practice trading, 5s timeout
            session: Optional aiohttp session to use instead of an owned one
        """
        self.settings = settings or Settings()
        self.account_id = account_id
        self.hostname = self.settings.get_rest_url()
        self.auth_header = f"Bearer {token}"
        self.user_agent = self.settings.user_agent
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Connection:
        """Build a connection from credentials held in settings."""
        settings = settings or Settings()
        if not settings.api_token or not settings.account_id:
            raise ValueError("V20_API_TOKEN and V20_ACCOUNT_ID must both be configured")
        return cls(settings.account_id, settings.api_token, settings=settings)

    @classmethod
    async def create(
        cls,
        account_id: str,
        token: str,
        settings: Settings | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> Connection:
        """Create a connection and verify it with check_connection()."""
        conn = cls(account_id, token, settings=settings, session=session)
        try:
            await conn.check_connection()
        except BaseException:
            await conn.close()
            raise
        return conn

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            trace_configs = [http_trace_config()] if self.settings.log_http else None
            self._session = aiohttp.ClientSession(trace_configs=trace_configs)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the owned session. Injected sessions are left to their owner."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    def auth_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Authorization": self.auth_header,
        }

    def streaming(self) -> StreamingConnection:
        """Return a streaming connection bound to this connection's account."""
        return StreamingConnection(self)

    async def check_connection(self) -> None:
        """Perform a request against the account, raising on any failure."""
        await self.get(f"/accounts/{self.account_id}")

    async def get(self, endpoint: str) -> bytes:
        return await self._request("GET", endpoint)

    async def post(self, endpoint: str, data: bytes) -> bytes:
        return await self._request("POST", endpoint, data)

    async def put(self, endpoint: str, data: bytes) -> bytes:
        return await self._request("PUT", endpoint, data)

    async def get_json(self, endpoint: str) -> Any:
        return json.loads(await self.get(endpoint))

    async def post_json(self, endpoint: str, payload: Any) -> Any:
        response = await self.post(endpoint, json.dumps(payload).encode("utf-8"))
        return json.loads(response)

    async def put_json(self, endpoint: str, payload: Any) -> Any:
        response = await self.put(endpoint, json.dumps(payload).encode("utf-8"))
        return json.loads(response)

    async def _request(self, method: str, endpoint: str, data: bytes | None = None) -> bytes:
        url = self.hostname + endpoint
        headers = self.auth_headers()
        headers["Content-Type"] = "application/json"
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout)

        async with self.session.request(
            method,
            url,
            data=data,
            headers=headers,
            timeout=timeout,
        ) as response:
            body = await response.read()
            if response.status >= 400:
                error_message, error_code = error_fields(body)
                error = APIError(
                    response.status,
                    url=url,
                    error_message=error_message,
                    error_code=error_code,
                )
                logger.warning(f"v20 {method} {endpoint} failed: {error}")
                raise error
            return body

