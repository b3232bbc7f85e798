"""Quote fetch pipeline: cache, crumb handshake, and typed decoding."""

from quotefeed.errors import QuoteError
from quotefeed.providers.yahoo import YahooQuoteClient
from quotefeed.quotes import (
    QuoteRequest,
    fast_info,
    fetch_quote,
    fetch_quote_raw,
    fetch_quotes,
    fetch_quotes_raw,
)
from quotefeed.services.response_cache import CacheMode

__all__ = [
    "CacheMode",
    "QuoteError",
    "QuoteRequest",
    "YahooQuoteClient",
    "fast_info",
    "fetch_quote",
    "fetch_quote_raw",
    "fetch_quotes",
    "fetch_quotes_raw",
]
