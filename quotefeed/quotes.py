"""Quote fetch pipeline for the v7 quote endpoint.

A fetch is a small state machine::

    ANONYMOUS -> DECODE
    ANONYMOUS -> STATUS_CHECK -> CREDENTIAL_REFRESH -> AUTHENTICATED -> DECODE
                      |                                   |
                      +--> error      STATUS_CHECK <------+--> error

The anonymous attempt may be answered from the response cache.  A 401 or
403 on that attempt triggers exactly one crumb refresh and one
authenticated retry; whatever the retry returns is final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import httpx

from quotefeed.conversions import exchange_candidates, node_to_quote, resolve_exchange
from quotefeed.decoding import decode_quote_documents, decode_quote_nodes
from quotefeed.errors import AuthError, MissingDataError, QuoteError, error_for_status
from quotefeed.models import FastInfo, Quote, QuoteNode
from quotefeed.services.response_cache import CacheMode

if TYPE_CHECKING:
    from quotefeed.providers.transport import RetryConfig
    from quotefeed.providers.yahoo import YahooQuoteClient

logger = logging.getLogger(__name__)

_AUTH_STATUSES = frozenset({401, 403})


class FetchState(Enum):
    ANONYMOUS = auto()
    STATUS_CHECK = auto()
    CREDENTIAL_REFRESH = auto()
    AUTHENTICATED = auto()
    DECODE = auto()


@dataclass(frozen=True)
class QuoteRequest:
    """Immutable description of one fetch."""

    symbols: tuple[str, ...]
    fields: Optional[tuple[str, ...]] = None
    cache_mode: CacheMode = CacheMode.USE
    retry: Optional[RetryConfig] = None

    def __post_init__(self) -> None:
        # A bare string would otherwise be split into one symbol per character.
        if isinstance(self.symbols, str):
            raise TypeError("symbols must be a sequence of strings, not a str")
        if isinstance(self.fields, str):
            raise TypeError("fields must be a sequence of strings, not a str")
        object.__setattr__(self, "symbols", tuple(self.symbols))
        if self.fields is not None:
            object.__setattr__(self, "fields", tuple(self.fields))
        if not self.symbols:
            raise ValueError("QuoteRequest needs at least one symbol")


@dataclass(frozen=True)
class _Outcome:
    body: str
    url: str
    status: Optional[int] = None  # None when the attempt succeeded

    @property
    def ok(self) -> bool:
        return self.status is None


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def build_quote_url(
    base_url: str,
    symbols: Sequence[str],
    fields: Optional[Sequence[str]] = None,
    crumb: Optional[str] = None,
) -> str:
    """Build the canonical request URL, which doubles as the cache key."""
    params: dict[str, str] = {"symbols": ",".join(symbols)}
    if fields:
        params["fields"] = ",".join(fields)
    if crumb is not None:
        params["crumb"] = crumb
    return str(httpx.URL(base_url).copy_merge_params(params))


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


async def _attempt(
    client: YahooQuoteClient,
    request: QuoteRequest,
    crumb: Optional[str],
) -> _Outcome:
    """Run one attempt.  Only the anonymous attempt may read the cache."""
    url = build_quote_url(client.base_quote_url, request.symbols, request.fields, crumb)

    if crumb is None and request.cache_mode is CacheMode.USE:
        cached = await client.cache_get(url)
        if cached is not None:
            return _Outcome(cached, url)

    response = await client.send(url, request.retry)
    body = response.text

    if response.is_success:
        if request.cache_mode is not CacheMode.BYPASS:
            await client.cache_put(url, body)
        return _Outcome(body, url)

    logger.debug("Quote request %s answered %d", url, response.status_code)
    return _Outcome(body, url, response.status_code)


async def _refresh_credentials(client: YahooQuoteClient) -> str:
    try:
        await client.ensure_credentials()
    except AuthError:
        raise
    except QuoteError as exc:
        raise AuthError(str(exc)) from exc

    crumb = await client.crumb()
    if crumb is None:
        raise AuthError("Crumb is not set after ensuring credentials")
    return crumb


async def fetch_quote_body(client: YahooQuoteClient, request: QuoteRequest) -> str:
    """Return the raw body for *request*, running the crumb handshake if needed."""
    state = FetchState.ANONYMOUS
    outcome: Optional[_Outcome] = None
    crumb: Optional[str] = None

    while True:
        if state is FetchState.ANONYMOUS:
            outcome = await _attempt(client, request, crumb=None)
            state = FetchState.DECODE if outcome.ok else FetchState.STATUS_CHECK

        elif state is FetchState.STATUS_CHECK:
            # Only an anonymous rejection earns a refresh; once a crumb has
            # been tried every failure is terminal.
            if crumb is None and outcome.status in _AUTH_STATUSES:
                state = FetchState.CREDENTIAL_REFRESH
            else:
                error = error_for_status(outcome.status, outcome.url)
                logger.warning("Quote fetch failed: %s", error)
                raise error

        elif state is FetchState.CREDENTIAL_REFRESH:
            logger.info("Quote request unauthorized (%d), acquiring crumb", outcome.status)
            crumb = await _refresh_credentials(client)
            state = FetchState.AUTHENTICATED

        elif state is FetchState.AUTHENTICATED:
            outcome = await _attempt(client, request, crumb=crumb)
            state = FetchState.DECODE if outcome.ok else FetchState.STATUS_CHECK

        else:
            return outcome.body


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def fetch(client: YahooQuoteClient, request: QuoteRequest) -> list[QuoteNode]:
    """Fetch typed quote records for *request*."""
    body = await fetch_quote_body(client, request)
    return decode_quote_nodes(body)


async def fetch_raw(client: YahooQuoteClient, request: QuoteRequest) -> list[dict]:
    """Fetch the quote objects for *request* as plain dicts."""
    body = await fetch_quote_body(client, request)
    return decode_quote_documents(body)


async def fetch_quotes(
    client: YahooQuoteClient,
    symbols: Iterable[str],
    fields: Optional[Iterable[str]] = None,
    cache_mode: CacheMode = CacheMode.USE,
    retry: Optional[RetryConfig] = None,
) -> list[QuoteNode]:
    """Fetch one or more quotes.  Handles caching, retries and the crumb."""
    request = QuoteRequest(symbols, fields, cache_mode, retry)
    return await fetch(client, request)


async def fetch_quotes_raw(
    client: YahooQuoteClient,
    symbols: Iterable[str],
    fields: Optional[Iterable[str]] = None,
    cache_mode: CacheMode = CacheMode.USE,
    retry: Optional[RetryConfig] = None,
) -> list[dict]:
    """Like :func:`fetch_quotes` but without mapping to typed records."""
    request = QuoteRequest(symbols, fields, cache_mode, retry)
    return await fetch_raw(client, request)


def _missing(symbol: str) -> MissingDataError:
    return MissingDataError(f"no quote result found for symbol {symbol}")


async def fetch_quote(
    client: YahooQuoteClient,
    symbol: str,
    cache_mode: CacheMode = CacheMode.USE,
    retry: Optional[RetryConfig] = None,
) -> Quote:
    """Fetch and normalize the quote for a single symbol."""
    nodes = await fetch_quotes(client, [symbol], None, cache_mode, retry)
    if not nodes:
        raise _missing(symbol)
    return node_to_quote(nodes[0])


async def fetch_quote_raw(
    client: YahooQuoteClient,
    symbol: str,
    fields: Optional[Iterable[str]] = None,
    cache_mode: CacheMode = CacheMode.USE,
    retry: Optional[RetryConfig] = None,
) -> dict:
    """Fetch a single symbol's quote object as a plain dict."""
    documents = await fetch_quotes_raw(client, [symbol], fields, cache_mode, retry)
    if not documents:
        raise _missing(symbol)
    return documents[0]


async def fast_info(
    client: YahooQuoteClient,
    symbol: str,
    cache_mode: CacheMode = CacheMode.USE,
    retry: Optional[RetryConfig] = None,
) -> FastInfo:
    """Fetch a minimal price view; last price falls back to the previous close."""
    nodes = await fetch_quotes(client, [symbol], None, cache_mode, retry)
    if not nodes:
        raise _missing(symbol)
    node = nodes[0]

    last_price = node.regular_market_price
    if last_price is None:
        last_price = node.regular_market_previous_close
    if last_price is None:
        raise MissingDataError(f"no price or previous close for symbol {symbol}")

    return FastInfo(
        symbol=node.symbol or symbol,
        last_price=last_price,
        previous_close=node.regular_market_previous_close,
        currency=node.currency,
        exchange=resolve_exchange(*exchange_candidates(node)),
        market_state=node.market_state,
    )
