"""Streaming event reader for the v20 pricing, transaction, account and candle feeds."""

from .client import StreamingConnection
from .endpoints import ACCOUNT_CHANGES, CANDLES, PRICES, TRANSACTIONS, StreamEndpoint
from .models import (
    OHLC,
    AccountChangeSet,
    Candlestick,
    CandleUpdate,
    Heartbeat,
    PriceBucket,
    PriceTick,
    StreamRecord,
    TransactionEvent,
)

__all__ = [
    "StreamingConnection",
    "StreamEndpoint",
    "PRICES",
    "TRANSACTIONS",
    "ACCOUNT_CHANGES",
    "CANDLES",
    "Heartbeat",
    "PriceBucket",
    "PriceTick",
    "TransactionEvent",
    "AccountChangeSet",
    "OHLC",
    "Candlestick",
    "CandleUpdate",
    "StreamRecord",
]
