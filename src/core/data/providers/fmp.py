"""FMP (Financial Modeling Prep) provider — US equity quotes and name search."""
import asyncio
import os

import aiohttp
import structlog
from aiolimiter import AsyncLimiter

from src.core.data.models import StockQuote, SymbolMatch
from src.core.data.providers.base import QuoteProvider
from src.core.errors import RateLimitedError, SymbolNotFoundError, UpstreamError

FMP_BASE = "https://financialmodelingprep.com/stable"
SEARCH_LIMIT = 10

logger = structlog.get_logger()


def map_quote(item: dict) -> StockQuote:
    """FMP /quote row -> StockQuote. Missing required fields raise KeyError."""
    return StockQuote(
        symbol=item["symbol"],
        price=item["price"],
        change=item["change"],
        change_percent=item["changePercentage"],
        company_name=item["name"],
        market_cap=item.get("marketCap"),
        volume=item.get("volume"),
        high=item.get("dayHigh"),
        low=item.get("dayLow"),
        open=item.get("open"),
        previous_close=item.get("previousClose"),
    )


def map_match(item: dict) -> SymbolMatch:
    return SymbolMatch(
        symbol=item.get("symbol", ""),
        name=item.get("name", ""),
        exchange=item.get("exchange") or item.get("exchangeShortName") or item.get("stockExchange") or "",
        asset_type=item.get("assetType") or "",
    )


def check_error_payload(payload) -> None:
    """FMP sometimes answers 200 with {"Error Message": ...} instead of a status code."""
    if isinstance(payload, dict) and "Error Message" in payload:
        message = str(payload["Error Message"])
        if "limit" in message.lower():
            raise RateLimitedError(message)
        raise UpstreamError(message)


class FMPProvider(QuoteProvider):

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = FMP_BASE,
        rate_limit: int = 10,  # free tier: 10 requests per minute
        rate_period_s: float = 60,
        timeout_s: float = 10,
    ):
        self._api_key = api_key or os.environ.get("FMP_API_KEY", "")
        self._base_url = base_url.rstrip("/")
        self._limiter = AsyncLimiter(rate_limit, rate_period_s)
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)

    @property
    def name(self) -> str:
        return "fmp"

    async def _get_json(self, path: str, params: dict):
        url = f"{self._base_url}{path}"
        params = {**params, "apikey": self._api_key}

        async with self._limiter:
            try:
                async with aiohttp.ClientSession(timeout=self._timeout) as session:
                    async with session.get(url, params=params) as resp:
                        if resp.status == 429:
                            raise RateLimitedError("FMP rate limit exceeded")
                        if resp.status >= 400:
                            raise UpstreamError(f"FMP returned HTTP {resp.status} for {path}")
                        payload = await resp.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning("fmp.request_failed", path=path, error=str(e))
                raise UpstreamError(f"FMP request failed: {e}") from e

        check_error_payload(payload)
        return payload

    async def get_quote(self, symbol: str) -> StockQuote:
        payload = await self._get_json("/quote", {"symbol": symbol})
        if not payload:
            raise SymbolNotFoundError(symbol)
        try:
            return map_quote(payload[0])
        except (KeyError, TypeError, IndexError) as e:
            raise UpstreamError(f"Malformed FMP quote for {symbol}: {e!r}") from e

    async def search(self, query: str) -> list[SymbolMatch]:
        payload = await self._get_json("/search-name", {"query": query})
        if not payload:
            return []
        if not isinstance(payload, list):
            raise UpstreamError(f"Malformed FMP search payload for {query!r}")
        return [map_match(item) for item in payload[:SEARCH_LIMIT]]
