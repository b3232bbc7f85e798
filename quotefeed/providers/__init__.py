"""Quote providers package."""

from quotefeed.providers.base import QuoteProvider
from quotefeed.providers.credentials import CrumbManager
from quotefeed.providers.transport import RetryConfig
from quotefeed.providers.yahoo import YahooQuoteClient

__all__ = ["CrumbManager", "QuoteProvider", "RetryConfig", "YahooQuoteClient"]
