"""Tests: wire record -> domain quote conversion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from quotefeed.conversions import (
    money_from_float,
    money_to_float,
    node_to_quote,
    normalize_exchange,
    parse_market_state,
    resolve_exchange,
)
from quotefeed.models import MarketState, QuoteNode


def _node(**fields) -> QuoteNode:
    return QuoteNode.model_validate(fields)


# ---------------------------------------------------------------------------
# Exchange resolution
# ---------------------------------------------------------------------------


class TestResolveExchange:
    def test_full_name_wins_over_short_code(self):
        node = _node(fullExchangeName="NasdaqGS", exchange="NYQ")
        assert node_to_quote(node).exchange == "NASDAQ"

    def test_full_name_only_source_used(self):
        node = _node(fullExchangeName="Some Venue", exchange="NMS")
        assert node_to_quote(node).exchange == "Some Venue"

    def test_falls_back_in_priority_order(self):
        assert node_to_quote(_node(exchange="NYQ", market="us_market")).exchange == "NYSE"
        assert node_to_quote(_node(market="us_market")).exchange == "us_market"
        assert node_to_quote(
            _node(marketCapFigureExchange="NMS")
        ).exchange == "NASDAQ"

    def test_none_present(self):
        assert resolve_exchange(None, None, None, None) is None

    def test_first_present_even_if_blank(self):
        # A present-but-blank value still wins; it normalizes to no exchange.
        assert resolve_exchange("", "NYQ") is None

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("NasdaqGS", "NASDAQ"),
            ("NMS", "NASDAQ"),
            ("nasdaq", "NASDAQ"),
            ("NYSE", "NYSE"),
            ("NYSE American", "AMEX"),
            ("  LSE ", "LSE"),
            ("Euronext", "Euronext"),
            ("   ", None),
            (None, None),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_exchange(raw) == expected


# ---------------------------------------------------------------------------
# Market state
# ---------------------------------------------------------------------------


class TestParseMarketState:
    @pytest.mark.parametrize("raw", ["REGULAR", "regular", " PRE "])
    def test_known_states(self, raw):
        assert parse_market_state(raw) in set(MarketState)

    def test_unknown_is_none(self):
        assert parse_market_state("HALTED") is None

    def test_missing_is_none(self):
        assert parse_market_state(None) is None
        assert parse_market_state("") is None

    def test_str_is_wire_value(self):
        assert str(MarketState.POSTPOST) == "POSTPOST"


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


class TestMoney:
    def test_keeps_decimal_digits(self):
        money = money_from_float(190.25, "USD")
        assert money.amount == Decimal("190.25")
        assert money.currency == "USD"

    def test_currency_optional(self):
        assert money_from_float(1.5).currency is None
        assert money_from_float(1.5, "").currency is None

    def test_to_float(self):
        assert money_to_float(money_from_float(421.0, "USD")) == pytest.approx(421.0)

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            money_from_float(float("nan"), "USD")


# ---------------------------------------------------------------------------
# node_to_quote
# ---------------------------------------------------------------------------


class TestNodeToQuote:
    def test_full_record(self):
        quote = node_to_quote(_node(
            symbol="AAPL",
            shortName="Apple Inc.",
            regularMarketPrice=190.25,
            regularMarketPreviousClose=189.5,
            currency="USD",
            fullExchangeName="NasdaqGS",
            marketState="REGULAR",
        ))
        assert quote.symbol == "AAPL"
        assert quote.shortname == "Apple Inc."
        assert quote.price.amount == Decimal("190.25")
        assert quote.price.currency == "USD"
        assert quote.previous_close.amount == Decimal("189.5")
        assert quote.exchange == "NASDAQ"
        assert quote.market_state is MarketState.REGULAR

    def test_empty_node_converts(self):
        quote = node_to_quote(QuoteNode())
        assert quote.symbol == ""
        assert quote.shortname is None
        assert quote.price is None
        assert quote.previous_close is None
        assert quote.exchange is None
        assert quote.market_state is None

    def test_price_without_currency(self):
        quote = node_to_quote(_node(symbol="X", regularMarketPrice=10.0))
        assert quote.price.amount == Decimal("10.0")
        assert quote.price.currency is None

    def test_unknown_wire_fields_ignored(self):
        quote = node_to_quote(_node(symbol="X", beta=1.2, trailingPE=30))
        assert quote.symbol == "X"
