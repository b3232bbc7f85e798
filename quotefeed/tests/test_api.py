"""Tests for the HTTP routes.

Route handlers are called directly (not via HTTP) with ``app.state``
pointing at a client backed by the fake upstream.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from conftest import envelope, make_client
from quotefeed.main import (
    _split_csv,
    app,
    health,
    quote,
    quote_fast_info,
    quotes,
    quotes_raw,
)
from quotefeed.services.response_cache import MemoryResponseCache

AAPL = {
    "symbol": "AAPL",
    "regularMarketPrice": 190.25,
    "currency": "USD",
    "fullExchangeName": "NasdaqGS",
    "marketState": "REGULAR",
}


@pytest.fixture(autouse=True)
def _install_client(upstream):
    app.state.quote_client = make_client(upstream, MemoryResponseCache())
    yield
    del app.state.quote_client


class TestSplitCsv:
    def test_splits_and_strips(self):
        assert _split_csv(" AAPL, MSFT ,,TSLA ") == ["AAPL", "MSFT", "TSLA"]

    def test_empty(self):
        assert _split_csv("") == []
        assert _split_csv(None) == []


class TestHealth:
    @pytest.mark.asyncio
    async def test_ok(self):
        result = await health()
        assert result["status"] == "ok"


class TestQuotesRoute:
    @pytest.mark.asyncio
    async def test_returns_normalized_quotes(self, upstream):
        upstream.respond((200, envelope(AAPL, {"symbol": "MSFT"})))
        result = await quotes(symbols="AAPL,MSFT", fields=None, fresh=False)

        assert result["count"] == 2
        first = result["quotes"][0]
        assert first["symbol"] == "AAPL"
        assert first["exchange"] == "NASDAQ"
        assert first["market_state"] == "REGULAR"
        assert first["price"] == {"amount": "190.25", "currency": "USD"}
        assert upstream.quote_requests[0].url.params["symbols"] == "AAPL,MSFT"

    @pytest.mark.asyncio
    async def test_blank_symbols_is_400(self, upstream):
        with pytest.raises(HTTPException) as excinfo:
            await quotes(symbols=" , ", fields=None, fresh=False)
        assert excinfo.value.status_code == 400
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_fields_forwarded(self, upstream):
        upstream.respond((200, envelope(AAPL)))
        await quotes(symbols="AAPL", fields="beta,regularMarketChange", fresh=False)
        assert upstream.quote_requests[0].url.params["fields"] == "beta,regularMarketChange"

    @pytest.mark.asyncio
    async def test_fresh_skips_cache(self, upstream):
        upstream.respond((200, envelope(AAPL)))
        await quotes(symbols="AAPL", fields=None, fresh=False)
        await quotes(symbols="AAPL", fields=None, fresh=False)
        assert len(upstream.quote_requests) == 1

        await quotes(symbols="AAPL", fields=None, fresh=True)
        assert len(upstream.quote_requests) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,expected",
        [(404, 404), (429, 429), (503, 502), (418, 502)],
    )
    async def test_upstream_errors_mapped(self, upstream, status, expected):
        upstream.respond((status, ""))
        with pytest.raises(HTTPException) as excinfo:
            await quotes(symbols="AAPL", fields=None, fresh=False)
        assert excinfo.value.status_code == expected

    @pytest.mark.asyncio
    async def test_non_finite_price_is_502(self, upstream):
        upstream.respond((200, '{"quoteResponse":{"result":[{"symbol":"AAPL",'
                               '"regularMarketPrice":1e400}]}}'))
        with pytest.raises(HTTPException) as excinfo:
            await quotes(symbols="AAPL", fields=None, fresh=False)
        assert excinfo.value.status_code == 502

    @pytest.mark.asyncio
    async def test_auth_failure_is_502(self, upstream):
        upstream.respond((401, ""))
        upstream.crumb_status = 403
        with pytest.raises(HTTPException) as excinfo:
            await quotes(symbols="AAPL", fields=None, fresh=False)
        assert excinfo.value.status_code == 502
        assert "auth" in excinfo.value.detail


class TestQuotesRawRoute:
    @pytest.mark.asyncio
    async def test_documents_untouched(self, upstream):
        upstream.respond((200, envelope({"symbol": "AAPL", "beta": 1.2})))
        result = await quotes_raw(symbols="AAPL", fields="beta", fresh=False)
        assert result == {"quotes": [{"symbol": "AAPL", "beta": 1.2}], "count": 1}


class TestQuoteRoute:
    @pytest.mark.asyncio
    async def test_single_quote(self, upstream):
        upstream.respond((200, envelope(AAPL)))
        result = await quote("AAPL", fresh=False)
        assert result["symbol"] == "AAPL"

    @pytest.mark.asyncio
    async def test_missing_is_404(self, upstream):
        upstream.respond((200, envelope()))
        with pytest.raises(HTTPException) as excinfo:
            await quote("NOPE", fresh=False)
        assert excinfo.value.status_code == 404
        assert "NOPE" in excinfo.value.detail

    @pytest.mark.asyncio
    async def test_fast_info(self, upstream):
        upstream.respond((200, envelope({
            "symbol": "MSFT",
            "regularMarketPreviousClose": 421.0,
            "currency": "USD",
            "exchange": "NMS",
        })))
        result = await quote_fast_info("MSFT", fresh=False)
        assert result["last_price"] == 421.0
        assert result["exchange"] == "NASDAQ"
