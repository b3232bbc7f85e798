"""Wire and domain models for quotes."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Wire models (v7 quote endpoint)
# ---------------------------------------------------------------------------


class QuoteNode(BaseModel):
    """One symbol's quote as the server sends it. Every field may be absent."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: Optional[str] = None
    short_name: Optional[str] = Field(default=None, alias="shortName")
    # Non-finite prices (NaN, or 1e400 overflowing to inf) fail validation.
    regular_market_price: Optional[float] = Field(
        default=None, alias="regularMarketPrice", allow_inf_nan=False
    )
    regular_market_previous_close: Optional[float] = Field(
        default=None, alias="regularMarketPreviousClose", allow_inf_nan=False
    )
    currency: Optional[str] = None
    full_exchange_name: Optional[str] = Field(default=None, alias="fullExchangeName")
    exchange: Optional[str] = None
    market: Optional[str] = None
    market_cap_figure_exchange: Optional[str] = Field(
        default=None, alias="marketCapFigureExchange"
    )
    market_state: Optional[str] = Field(default=None, alias="marketState")


class QuoteResponse(BaseModel):
    result: Optional[list[QuoteNode]] = None
    # Carried but never inspected.
    error: Optional[Any] = None


class QuoteEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quote_response: Optional[QuoteResponse] = Field(
        default=None, alias="quoteResponse"
    )


# ---------------------------------------------------------------------------
# Domain models
# ---------------------------------------------------------------------------


class MarketState(str, Enum):
    PREPRE = "PREPRE"
    PRE = "PRE"
    REGULAR = "REGULAR"
    POST = "POST"
    POSTPOST = "POSTPOST"
    CLOSED = "CLOSED"

    def __str__(self) -> str:
        return self.value


class Money(BaseModel):
    """An amount tagged with an optional ISO currency code."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: Optional[str] = None


class Quote(BaseModel):
    """Normalized quote snapshot for a single symbol."""

    symbol: str = ""
    shortname: Optional[str] = None
    price: Optional[Money] = None
    previous_close: Optional[Money] = None
    exchange: Optional[str] = None
    market_state: Optional[MarketState] = None


class FastInfo(BaseModel):
    """Minimal price view of a quote, with a last price that is always set."""

    symbol: str
    last_price: float
    previous_close: Optional[float] = None
    currency: Optional[str] = None
    exchange: Optional[str] = None
    market_state: Optional[str] = None
