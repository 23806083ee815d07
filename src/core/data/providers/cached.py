"""CachedQuoteProvider — wraps any QuoteProvider with the quote/search cache stores."""
from __future__ import annotations

import structlog

from src.core.data.cache.base import (
    Clock,
    QuoteCacheStore,
    SearchCacheStore,
    normalize_symbol,
    utc_now,
)
from src.core.data.cache.freshness import FreshnessPolicy
from src.core.data.models import StockQuote, SymbolMatch
from src.core.data.providers.base import QuoteProvider
from src.core.errors import MarketDataError

logger = structlog.get_logger()


class CachedQuoteProvider(QuoteProvider):
    """Decorator that checks the cache stores before hitting the upstream provider.

    The read-then-write sequence is not transactional: two
    requests that miss at the same time both call upstream and both upsert,
    and the store keeps whichever write lands last.
    """

    def __init__(
        self,
        upstream: QuoteProvider,
        quotes: QuoteCacheStore,
        searches: SearchCacheStore,
        policy: FreshnessPolicy | None = None,
        clock: Clock = utc_now,
    ):
        self._upstream = upstream
        self._quotes = quotes
        self._searches = searches
        self._policy = policy or FreshnessPolicy()
        self._clock = clock

    @property
    def name(self) -> str:
        return f"cached_{self._upstream.name}"

    async def cached_quote(self, symbol: str) -> StockQuote | None:
        """Cached quote for symbol if it was fetched during the current quote day."""
        entry = await self._quotes.get(symbol)
        if entry is not None and self._policy.quote_is_fresh(entry.cache_date, self._clock()):
            logger.info("cache.hit", kind="quote", symbol=symbol)
            return entry.quote
        logger.info("cache.miss", kind="quote", symbol=symbol, stale=entry is not None)
        return None

    async def _fetch_and_store(self, symbol: str) -> StockQuote:
        logger.info("upstream.fetch", kind="quote", provider=self._upstream.name, symbol=symbol)
        quote = await self._upstream.get_quote(symbol)
        await self._quotes.upsert(symbol, quote)
        logger.info("cache.stored", kind="quote", symbol=symbol)
        return quote

    async def get_quote(self, symbol: str) -> StockQuote:
        symbol = normalize_symbol(symbol)
        cached = await self.cached_quote(symbol)
        if cached is not None:
            return cached
        return await self._fetch_and_store(symbol)

    async def search(self, query: str) -> list[SymbolMatch]:
        entry = await self._searches.get(query)
        now = self._clock()
        if entry is not None and self._policy.search_is_usable(entry, now):
            logger.info(
                "cache.hit",
                kind="search",
                query=query,
                results=len(entry.results),
                age_hours=round((now - entry.last_updated).total_seconds() / 3600),
            )
            return entry.results

        if entry is None:
            logger.info("cache.miss", kind="search", query=query)
        elif len(entry.results) < self._policy.search_min_results:
            logger.info(
                "cache.insufficient",
                kind="search",
                query=query,
                results=len(entry.results),
                required=self._policy.search_min_results,
            )
        else:
            logger.info("cache.expired", kind="search", query=query, age_days=(now - entry.last_updated).days)

        logger.info("upstream.fetch", kind="search", provider=self._upstream.name, query=query)
        results = await self._upstream.search(query)
        if not results:
            # empty answers are never cached
            logger.warning("upstream.empty", kind="search", query=query)
            return []

        await self._searches.upsert(query, results)
        logger.info("cache.stored", kind="search", query=query, results=len(results))
        return results

    async def partition(self, symbols: list[str]) -> tuple[list[StockQuote], list[str]]:
        """Split symbols into (fresh cached quotes, symbols that need fetching).

        Symbols are normalized and de-duplicated, first occurrence wins.
        """
        hits: list[StockQuote] = []
        misses: list[str] = []
        seen: set[str] = set()
        for raw in symbols:
            symbol = normalize_symbol(raw)
            if not symbol or symbol in seen:
                continue
            seen.add(symbol)
            cached = await self.cached_quote(symbol)
            if cached is not None:
                hits.append(cached)
            else:
                misses.append(symbol)
        return hits, misses

    async def get_multiple_quotes(self, symbols: list[str]) -> list[StockQuote]:
        """Quotes for every symbol that can be served; failures are logged and omitted.

        Cache hits come first in input order, followed by freshly fetched
        quotes in input order. Misses are fetched one at a time.
        """
        quotes, misses = await self.partition(symbols)
        if misses:
            logger.info("quote.batch_fetch", symbols=misses, cached=len(quotes))

        for symbol in misses:
            try:
                quotes.append(await self._fetch_and_store(symbol))
            except MarketDataError as e:
                logger.warning(
                    "quote.batch_failed",
                    symbol=symbol,
                    error=type(e).__name__,
                    detail=str(e),
                )
        return quotes
