"""OANDA v20 streaming endpoints: prices, transactions, account changes, candles."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import aclosing, asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Iterable

import aiohttp
from yarl import URL

from ..errors import StreamConnectionError, error_fields
from .decoder import decode_line
from .endpoints import (
    ACCOUNT_CHANGES,
    CANDLES,
    PRICES,
    TRANSACTIONS,
    StreamEndpoint,
    granularity_query,
    instruments_query,
)
from .lines import iter_lines
from .models import AccountChangeSet, CandleUpdate, Heartbeat, PriceTick, StreamRecord, TransactionEvent

if TYPE_CHECKING:
    from ..connection import Connection


logger = logging.getLogger(__name__)


class StreamingConnection:
    """
    Reads the v20 streaming endpoints for the account bound to a Connection.

    Each stream_* call holds one HTTP response open and hands every decoded
    record to the handler, in arrival order, until the service closes the
    stream or something fails. Heartbeats are consumed here and never reach
    the handler. There is no reconnection: when a call returns or raises,
    the stream is over and the caller decides whether to open it again.

    Handlers may be plain functions or coroutine functions. The next line is
    not read until the handler returns, so a slow handler slows the socket.
    Exceptions raised by a handler propagate unchanged.

    Usage:
        async with Connection(account_id, token) as conn:
            await conn.streaming().stream_prices(["EUR_USD"], print)
    """

    def __init__(self, connection: Connection):
        settings = connection.settings
        self.connection = connection
        self.account_id = connection.account_id
        self.stream_url = settings.get_stream_url()
        self.max_line_bytes = settings.max_line_bytes
        self.timeout = aiohttp.ClientTimeout(
            total=None,
            connect=settings.stream_connect_timeout,
            sock_read=settings.stream_read_timeout,
        )

    def stream_headers(self) -> dict[str, str]:
        headers = self.connection.auth_headers()
        headers["Accept-Datetime-Format"] = "RFC3339"
        return headers

    async def stream_prices(
        self,
        instruments: Iterable[str],
        handler: Callable[[PriceTick], Any],
    ) -> None:
        """
        Stream prices for one or more instruments.

        Args:
            instruments: Instruments in order (e.g., ["EUR_USD", "GBP_USD"]); must not be empty
            handler: Called once per PriceTick
        """
        await self._dispatch(self.iter_prices(instruments), handler)

    async def stream_transactions(self, handler: Callable[[TransactionEvent], Any]) -> None:
        """Stream transaction events for the account."""
        await self._dispatch(self.iter_transactions(), handler)

    async def stream_account_changes(self, handler: Callable[[AccountChangeSet], Any]) -> None:
        """Stream account change sets for the account."""
        await self._dispatch(self.iter_account_changes(), handler)

    async def stream_candles(
        self,
        instrument: str,
        granularity: str,
        handler: Callable[[CandleUpdate], Any],
    ) -> None:
        """
        Stream candle updates for one instrument.

        Args:
            instrument: Instrument (e.g., "EUR_USD")
            granularity: Candle granularity code (e.g., "M1", "H1", "D")
            handler: Called once per CandleUpdate
        """
        await self._dispatch(self.iter_candles(instrument, granularity), handler)

    # Iterator forms. Arguments are validated when called, before any request.
    # Close the iterator (contextlib.aclosing) if you stop before it ends.

    def iter_prices(self, instruments: Iterable[str]) -> AsyncIterator[PriceTick]:
        url = PRICES.build_url(self.stream_url, self.account_id, query=instruments_query(instruments))
        return self._records(url, PRICES)

    def iter_transactions(self) -> AsyncIterator[TransactionEvent]:
        return self._records(TRANSACTIONS.build_url(self.stream_url, self.account_id), TRANSACTIONS)

    def iter_account_changes(self) -> AsyncIterator[AccountChangeSet]:
        return self._records(ACCOUNT_CHANGES.build_url(self.stream_url, self.account_id), ACCOUNT_CHANGES)

    def iter_candles(self, instrument: str, granularity: str) -> AsyncIterator[CandleUpdate]:
        if not instrument or not instrument.strip():
            raise ValueError("Instrument is required")
        url = CANDLES.build_url(
            self.stream_url,
            self.account_id,
            query=granularity_query(granularity),
            instrument=instrument.strip(),
        )
        return self._records(url, CANDLES)

    async def _dispatch(self, records: AsyncIterator[StreamRecord], handler: Callable[[Any], Any]) -> None:
        async with aclosing(records):
            async for record in records:
                result = handler(record)
                if inspect.isawaitable(result):
                    await result

    async def _records(self, url: str, endpoint: StreamEndpoint) -> AsyncIterator[StreamRecord]:
        record_count = 0
        heartbeat_count = 0
        last_heartbeat: str | None = None

        async with self._open(url, endpoint) as response:
            try:
                async with aclosing(iter_lines(response.content, self.max_line_bytes, url=url)) as lines:
                    async for line in lines:
                        record = decode_line(line, endpoint.model, endpoint.discriminated)
                        if record is None:
                            continue

                        if isinstance(record, Heartbeat):
                            heartbeat_count += 1
                            last_heartbeat = record.time
                            logger.debug(f"Heartbeat on {endpoint.name} stream at {record.time}")
                            continue

                        record_count += 1
                        yield record
            finally:
                logger.info(
                    f"Closed {endpoint.name} stream after {record_count} record(s) and "
                    f"{heartbeat_count} heartbeat(s); last heartbeat {last_heartbeat}"
                )

    @asynccontextmanager
    async def _open(self, url: str, endpoint: StreamEndpoint) -> AsyncIterator[aiohttp.ClientResponse]:
        """Open the stream response; it is closed on every exit path."""
        logger.info(f"Connecting to {endpoint.name} stream: {url}")

        try:
            response = await self.connection.session.get(
                URL(url, encoded=True),
                headers=self.stream_headers(),
                timeout=self.timeout,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to open {endpoint.name} stream: {e!r}")
            raise StreamConnectionError(f"Failed to open {endpoint.name} stream: {e!r}", url=url) from e

        try:
            if response.status >= 400:
                await self._raise_for_status(response, url, endpoint)
            logger.info(f"Connected to {endpoint.name} stream.")
            yield response
        finally:
            response.close()

    async def _raise_for_status(
        self,
        response: aiohttp.ClientResponse,
        url: str,
        endpoint: StreamEndpoint,
    ) -> None:
        try:
            body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError):
            body = b""
        error_message, _ = error_fields(body)
        message = f"{endpoint.name} stream returned HTTP {response.status}"
        if error_message:
            message += f": {error_message}"
        logger.error(message)
        raise StreamConnectionError(message, url=url, status=response.status)
