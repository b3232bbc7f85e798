"""Yahoo Finance quote client: HTTP session, cache, and crumb in one place."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from quotefeed import quotes
from quotefeed.config import CACHE_TTL_SECONDS, HTTP_TIMEOUT, QUOTE_BASE_URL, USER_AGENT
from quotefeed.conversions import node_to_quote
from quotefeed.models import FastInfo, Quote
from quotefeed.providers.base import QuoteProvider
from quotefeed.providers.credentials import CrumbManager
from quotefeed.providers.transport import RetryConfig, send_with_retry
from quotefeed.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)


class YahooQuoteClient(QuoteProvider):
    """Client for the v7 quote endpoint.

    Holds the collaborators the fetch pipeline in :mod:`quotefeed.quotes`
    calls: the ``httpx.AsyncClient`` (and its cookie jar), an optional
    response cache, the crumb manager, and the default retry policy.
    Safe to share between concurrent fetches.
    """

    def __init__(
        self,
        base_quote_url: str = QUOTE_BASE_URL,
        cache: Optional[ResponseCache] = None,
        cache_ttl: Optional[float] = CACHE_TTL_SECONDS,
        retry: Optional[RetryConfig] = None,
        http: Optional[httpx.AsyncClient] = None,
        credentials: Optional[CrumbManager] = None,
    ) -> None:
        self._base_quote_url = base_quote_url
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._retry = retry or RetryConfig()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=HTTP_TIMEOUT,
            follow_redirects=True,
            headers={"user-agent": USER_AGENT},
        )
        self._credentials = credentials or CrumbManager(self._http)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> YahooQuoteClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def base_quote_url(self) -> str:
        return self._base_quote_url

    # -- Cache ---------------------------------------------------------------

    async def cache_get(self, key: str) -> Optional[str]:
        if self._cache is None:
            return None
        body = await self._cache.get(key)
        if body is not None:
            logger.debug("Cache hit: %s", key)
        return body

    async def cache_put(self, key: str, body: str, ttl: Optional[float] = None) -> None:
        if self._cache is None:
            return
        await self._cache.put(key, body, ttl if ttl is not None else self._cache_ttl)

    async def clear_cache(self) -> None:
        if self._cache is not None:
            await self._cache.clear()

    # -- Credentials ---------------------------------------------------------

    async def ensure_credentials(self) -> None:
        await self._credentials.ensure_credentials()

    async def crumb(self) -> Optional[str]:
        return await self._credentials.crumb()

    def invalidate_credentials(self) -> None:
        self._credentials.invalidate()

    # -- Transport -----------------------------------------------------------

    async def send(
        self, url: str, retry_override: Optional[RetryConfig] = None,
    ) -> httpx.Response:
        """GET *url* as JSON through the retrying transport."""
        request = self._http.build_request(
            "GET", url, headers={"accept": "application/json"},
        )
        return await send_with_retry(self._http, request, retry_override or self._retry)

    # -- Public interface ----------------------------------------------------

    async def get_quote(self, symbol: str) -> Quote:
        return await quotes.fetch_quote(self, symbol)

    async def get_quotes(self, symbols: list[str]) -> list[Quote]:
        nodes = await quotes.fetch_quotes(self, symbols)
        return [node_to_quote(node) for node in nodes]

    async def get_fast_info(self, symbol: str) -> FastInfo:
        return await quotes.fast_info(self, symbol)
