"""Record shapes carried by the v20 streaming endpoints."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


HEARTBEAT_TYPE = "HEARTBEAT"


class StreamModel(BaseModel):
    """Base for wire shapes: camelCase aliases on the wire, unknown fields ignored."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Heartbeat(StreamModel):
    """Keep-alive record. Consumed by the stream loop, never handed to handlers."""
    type: str
    time: str


class PriceBucket(StreamModel):
    price: str  # decimal string, passed through as sent
    liquidity: int = 0


class PriceTick(StreamModel):
    """Pricing stream record (type PRICE)."""
    type: str = Field(min_length=1)
    time: str = ""
    instrument: str = ""
    bids: list[PriceBucket] = Field(default_factory=list)
    asks: list[PriceBucket] = Field(default_factory=list)
    closeout_bid: str = Field(default="", alias="closeoutBid")
    closeout_ask: str = Field(default="", alias="closeoutAsk")
    status: str = ""
    tradeable: bool = False


class TransactionEvent(StreamModel):
    """Transaction stream record; the transaction body is left as decoded JSON."""
    type: str = Field(min_length=1)
    time: str = ""
    transaction_id: str = Field(default="", alias="transactionID")
    account_id: str = Field(default="", alias="accountID")
    batch_id: str = Field(default="", alias="batchID")
    request_id: str = Field(default="", alias="requestID")
    transaction: Any = None


class AccountChangeSet(StreamModel):
    """
    Account changes stream record.

    The service sends no discriminant for this record; it is recognized by the
    endpoint it arrives on. ``type`` is accepted if present so that a service
    revision adding one does not break decoding.
    """
    type: str | None = None
    time: str = ""
    changes: Any = None
    state: Any = None
    last_transaction_id: str = Field(default="", alias="lastTransactionID")


class OHLC(StreamModel):
    open: float
    high: float
    low: float
    close: float


class Candlestick(StreamModel):
    time: str = ""
    bid: OHLC | None = None
    ask: OHLC | None = None
    mid: OHLC | None = None
    volume: int = 0
    complete: bool = False


class CandleUpdate(StreamModel):
    """Candle stream record."""
    type: str = Field(min_length=1)
    time: str = ""
    instrument: str = ""
    granularity: str = ""
    candles: list[Candlestick] = Field(default_factory=list)


StreamRecord = Union[PriceTick, TransactionEvent, AccountChangeSet, CandleUpdate]
