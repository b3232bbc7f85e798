"""Abstract base class for quote providers."""

from abc import ABC, abstractmethod

from quotefeed.models import FastInfo, Quote


class QuoteProvider(ABC):
    """Interface that every quote provider must implement."""

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote for *symbol*.

        Raises ``MissingDataError`` when the upstream has no record for it.
        """

    @abstractmethod
    async def get_quotes(self, symbols: list[str]) -> list[Quote]:
        """Fetch quotes for several symbols in one request.

        The result may be shorter than *symbols* (or empty) when the
        upstream omits some of them.
        """

    @abstractmethod
    async def get_fast_info(self, symbol: str) -> FastInfo:
        """Fetch a minimal price view for *symbol*."""
