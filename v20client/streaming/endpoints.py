"""Streaming endpoint definitions and URL building."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from urllib.parse import quote

from .models import AccountChangeSet, CandleUpdate, PriceTick, StreamModel, TransactionEvent


@dataclass(frozen=True)
class StreamEndpoint:
    """One long-lived event feed: where it lives and what it carries."""
    name: str
    path_template: str  # formatted with account_id and any path parameters
    model: type[StreamModel]
    discriminated: bool = True  # records carry a non-empty "type"

    def build_url(
        self,
        stream_url: str,
        account_id: str,
        query: str = "",
        **path_params: str,
    ) -> str:
        """
        Build the full stream URL.

        Args:
            stream_url: Stream base URL (e.g., "https://stream-fxpractice.oanda.com/v3")
            account_id: Account the connection is bound to
            query: Already-encoded query string, without the leading "?"
            **path_params: Values for extra path placeholders, percent-encoded here

        Returns:
            Absolute URL
        """
        encoded = {key: quote(value, safe="") for key, value in path_params.items()}
        path = self.path_template.format(account_id=quote(account_id, safe=""), **encoded)
        url = stream_url.rstrip("/") + path
        if query:
            url += "?" + query
        return url


PRICES = StreamEndpoint(
    name="prices",
    path_template="/accounts/{account_id}/pricing/stream",
    model=PriceTick,
)
TRANSACTIONS = StreamEndpoint(
    name="transactions",
    path_template="/accounts/{account_id}/transactions/stream",
    model=TransactionEvent,
)
ACCOUNT_CHANGES = StreamEndpoint(
    name="account_changes",
    path_template="/accounts/{account_id}/changes/stream",
    model=AccountChangeSet,
    discriminated=False,
)
CANDLES = StreamEndpoint(
    name="candles",
    path_template="/accounts/{account_id}/instruments/{instrument}/candles/stream",
    model=CandleUpdate,
)


def normalize_instruments(instruments: Iterable[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order. Raises if nothing is left."""
    ordered = list(dict.fromkeys(i.strip() for i in instruments if i and i.strip()))
    if not ordered:
        raise ValueError("At least one instrument is required")
    return ordered


def instruments_query(instruments: Iterable[str]) -> str:
    # Comma-joined list, with the comma itself percent-encoded (%2C)
    return "instruments=" + quote(",".join(normalize_instruments(instruments)), safe="")


def granularity_query(granularity: str) -> str:
    if not granularity or not granularity.strip():
        raise ValueError("Granularity is required")
    return "granularity=" + quote(granularity.strip(), safe="")
