"""Test helpers — fake clock, quote factories and a configurable mock provider."""
from datetime import datetime, timedelta, timezone

from src.core.data.models import StockQuote, SymbolMatch
from src.core.data.providers.base import QuoteProvider
from src.core.errors import SymbolNotFoundError, UpstreamError

T0 = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_quote(symbol: str = "AAPL", price: float = 190.0, change: float = 1.5) -> StockQuote:
    return StockQuote(
        symbol=symbol,
        price=price,
        change=change,
        change_percent=round(change / (price - change) * 100, 4),
        company_name=f"{symbol} Inc.",
        market_cap=1e12,
        volume=5_000_000,
        high=price + 1,
        low=price - 1,
        open=price - 0.5,
        previous_close=price - change,
    )


def make_matches(n: int, prefix: str = "AP") -> list[SymbolMatch]:
    return [
        SymbolMatch(symbol=f"{prefix}{i}", name=f"{prefix} Company {i}", exchange="NASDAQ", asset_type="stock")
        for i in range(n)
    ]


class MockProvider(QuoteProvider):
    """Test helper — a mock QuoteProvider with per-symbol failures and call counting."""

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
        search_results: dict[str, list[SymbolMatch]] | None = None,
        search_error: Exception | None = None,
    ):
        self._prices = prices or {}
        self._failures = failures or {}
        self._search_results = search_results or {}
        self._search_error = search_error
        self.quote_calls: list[str] = []
        self.search_calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    async def get_quote(self, symbol):
        self.quote_calls.append(symbol)
        if symbol in self._failures:
            raise self._failures[symbol]
        if symbol not in self._prices:
            raise SymbolNotFoundError(symbol)
        return make_quote(symbol, self._prices[symbol])

    async def search(self, query):
        self.search_calls.append(query)
        if self._search_error is not None:
            raise self._search_error
        return list(self._search_results.get(query, []))


def upstream_down(symbol: str) -> UpstreamError:
    return UpstreamError(f"connection reset while fetching {symbol}")
