"""Abstract QuoteProvider — all market data sources implement this."""
from abc import ABC, abstractmethod

from src.core.data.models import StockQuote, SymbolMatch


class QuoteProvider(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique key: 'fmp', 'cached_fmp'"""
        ...

    @abstractmethod
    async def get_quote(self, symbol: str) -> StockQuote:
        """
        Latest quote for one symbol.
        Raises SymbolNotFoundError, RateLimitedError or UpstreamError.
        """
        ...

    @abstractmethod
    async def search(self, query: str) -> list[SymbolMatch]:
        """Up to 10 ranked matches, possibly none. Raises RateLimitedError or UpstreamError."""
        ...
