"""Pure conversions from quote wire records to domain values."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Optional

from quotefeed.models import MarketState, Money, Quote, QuoteNode

# Known exchange spellings -> canonical code.  Names not listed pass through.
_EXCHANGE_ALIASES: dict[str, str] = {
    "NASDAQ": "NASDAQ",
    "NASDAQGS": "NASDAQ",
    "NASDAQGM": "NASDAQ",
    "NASDAQCM": "NASDAQ",
    "NMS": "NASDAQ",
    "NGM": "NASDAQ",
    "NCM": "NASDAQ",
    "NAS": "NASDAQ",
    "NYSE": "NYSE",
    "NYQ": "NYSE",
    "NYSEARCA": "NYSEARCA",
    "PCX": "NYSEARCA",
    "NYSEAMERICAN": "AMEX",
    "ASE": "AMEX",
    "AMEX": "AMEX",
    "CBOE": "CBOE",
    "BATS": "BATS",
    "BTS": "BATS",
    "LSE": "LSE",
    "LONDON": "LSE",
    "TSX": "TSX",
    "TOR": "TSX",
    "TORONTO": "TSX",
    "XETRA": "XETRA",
    "GER": "XETRA",
    "TOKYO": "TSE",
    "JPX": "TSE",
    "HKSE": "HKEX",
    "HKG": "HKEX",
}


def money_from_float(amount: float, currency: Optional[str] = None) -> Money:
    """Wrap a float price as :class:`Money`, going through ``str`` to keep digits."""
    if not math.isfinite(amount):
        raise ValueError(f"Not a finite amount: {amount!r}")
    return Money(amount=Decimal(str(amount)), currency=currency or None)


def money_to_float(money: Money) -> float:
    return float(money.amount)


def normalize_exchange(name: Optional[str]) -> Optional[str]:
    """Canonicalize an exchange name; blank input means no exchange."""
    if name is None:
        return None
    stripped = name.strip()
    if not stripped:
        return None
    key = stripped.upper().replace(" ", "").replace("-", "")
    return _EXCHANGE_ALIASES.get(key, stripped)


def resolve_exchange(*candidates: Optional[str]) -> Optional[str]:
    """Return the first present candidate, normalized.  Never combines them."""
    for candidate in candidates:
        if candidate is not None:
            return normalize_exchange(candidate)
    return None


def parse_market_state(value: Optional[str]) -> Optional[MarketState]:
    """Parse a market-state string; unknown values become ``None``."""
    if not value:
        return None
    try:
        return MarketState(value.strip().upper())
    except ValueError:
        return None


def exchange_candidates(node: QuoteNode) -> tuple[Optional[str], ...]:
    # Priority order: full name, short code, market id, market-cap exchange.
    return (
        node.full_exchange_name,
        node.exchange,
        node.market,
        node.market_cap_figure_exchange,
    )


def node_to_quote(node: QuoteNode) -> Quote:
    """Convert one wire record to a :class:`Quote`.

    An entirely empty node converts to a quote with an empty symbol and
    nothing else set; callers treat that as a degenerate upstream record.
    """
    currency = node.currency
    price = (
        money_from_float(node.regular_market_price, currency)
        if node.regular_market_price is not None
        else None
    )
    previous_close = (
        money_from_float(node.regular_market_previous_close, currency)
        if node.regular_market_previous_close is not None
        else None
    )
    return Quote(
        symbol=node.symbol or "",
        shortname=node.short_name,
        price=price,
        previous_close=previous_close,
        exchange=resolve_exchange(*exchange_candidates(node)),
        market_state=parse_market_state(node.market_state),
    )
