"""Tests for the quote error hierarchy and status mapping."""

import httpx
import pytest

from quotefeed.errors import (
    AuthError,
    DecodeError,
    MissingDataError,
    NotFoundError,
    QuoteError,
    RateLimitedError,
    ServerError,
    StatusError,
    TransportError,
    error_for_status,
)

URL = "https://query.example.test/v7/finance/quote?symbols=AAPL"


class TestErrorForStatus:
    def test_404(self):
        err = error_for_status(404, URL)
        assert isinstance(err, NotFoundError)
        assert err.url == URL

    def test_429(self):
        err = error_for_status(429, URL)
        assert isinstance(err, RateLimitedError)
        assert err.url == URL

    @pytest.mark.parametrize("status", [500, 502, 503, 599])
    def test_5xx(self, status):
        err = error_for_status(status, URL)
        assert isinstance(err, ServerError)
        assert err.status == status
        assert err.url == URL

    @pytest.mark.parametrize("status", [400, 401, 403, 418, 600, 302])
    def test_other(self, status):
        err = error_for_status(status, URL)
        assert type(err) is StatusError
        assert err.status == status


class TestHierarchy:
    @pytest.mark.parametrize(
        "err",
        [
            NotFoundError(URL),
            RateLimitedError(URL),
            ServerError(500, URL),
            StatusError(418, URL),
            AuthError("no crumb"),
            MissingDataError("no quote result found for symbol AAPL"),
            DecodeError(ValueError("bad")),
            TransportError(URL, httpx.ConnectError("refused")),
        ],
    )
    def test_all_are_quote_errors(self, err):
        assert isinstance(err, QuoteError)

    def test_messages_carry_context(self):
        assert URL in str(ServerError(503, URL))
        assert "503" in str(ServerError(503, URL))
        assert str(AuthError("Crumb is not set")) == "Crumb is not set"
        assert "bad" in str(DecodeError(ValueError("bad")))
