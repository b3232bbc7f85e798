"""Shared fixtures: a fake quote upstream served through httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Optional

import httpx
import pytest

from quotefeed.providers.credentials import CrumbManager
from quotefeed.providers.transport import NO_RETRY
from quotefeed.providers.yahoo import YahooQuoteClient
from quotefeed.services.response_cache import MemoryResponseCache

QUOTE_URL = "https://query.example.test/v7/finance/quote"
COOKIE_URL = "https://fc.example.test/"
CRUMB_URL = "https://query.example.test/v1/test/getcrumb"


def envelope(*nodes: dict, error: Optional[dict] = None) -> str:
    """Build a v7 quote response body."""
    return json.dumps({"quoteResponse": {"result": list(nodes), "error": error}})


class FakeUpstream:
    """Scripted quote endpoint plus cookie and crumb endpoints.

    ``quote_responses`` is consumed front to back; the last entry repeats.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.quote_responses: list[tuple[int, str]] = [(200, envelope())]
        self.crumb_status = 200
        self.crumb_text = "crumb-abc"
        self.crumb_calls = 0
        self.cookie_calls = 0
        # When set, quote requests without a crumb are rejected with 401.
        self.require_crumb = False

    def respond(self, *responses: tuple[int, str]) -> None:
        self.quote_responses = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(COOKIE_URL):
            self.cookie_calls += 1
            return httpx.Response(404, text="")
        if url.startswith(CRUMB_URL):
            self.crumb_calls += 1
            return httpx.Response(self.crumb_status, text=self.crumb_text)

        if self.require_crumb and "crumb" not in request.url.params:
            return httpx.Response(401, text="Unauthorized")
        if len(self.quote_responses) > 1:
            status, body = self.quote_responses.pop(0)
        else:
            status, body = self.quote_responses[0]
        return httpx.Response(status, text=body)

    @property
    def quote_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(QUOTE_URL)]


def make_client(upstream: FakeUpstream, cache=None) -> YahooQuoteClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return YahooQuoteClient(
        base_quote_url=QUOTE_URL,
        cache=cache,
        retry=NO_RETRY,
        http=http,
        credentials=CrumbManager(http, cookie_url=COOKIE_URL, crumb_url=CRUMB_URL),
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def cache() -> MemoryResponseCache:
    return MemoryResponseCache()


@pytest.fixture
def client(upstream, cache) -> YahooQuoteClient:
    return make_client(upstream, cache)
