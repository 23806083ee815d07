"""Unit tests for CachedQuoteProvider — the cache-first quote/search call path."""
from datetime import timedelta, timezone

import pytest

from src.core.data.cache.base import SearchCacheEntry
from src.core.data.cache.freshness import FreshnessPolicy
from src.core.data.cache.memory import MemoryQuoteCacheStore, MemorySearchCacheStore
from src.core.data.providers.cached import CachedQuoteProvider
from src.core.errors import RateLimitedError, SymbolNotFoundError, UpstreamError
from tests.unit.helpers import T0, FakeClock, MockProvider, make_matches, upstream_down

UTC_POLICY = FreshnessPolicy(quote_tz=timezone.utc)


def _cached(upstream: MockProvider, searches=()):
    clock = FakeClock()
    quotes = MemoryQuoteCacheStore(clock=clock, quote_tz=timezone.utc)
    search_store = MemorySearchCacheStore(searches, clock=clock)
    provider = CachedQuoteProvider(upstream, quotes, search_store, policy=UTC_POLICY, clock=clock)
    return provider, clock, quotes, search_store


# ── Single quotes ────────────────────────────────────────────────────────


class TestGetQuote:

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self):
        upstream = MockProvider(prices={"AAPL": 190.0})
        provider, _, quotes, _ = _cached(upstream)

        quote = await provider.get_quote("AAPL")

        assert quote.price == 190.0
        assert upstream.quote_calls == ["AAPL"]
        assert (await quotes.get("AAPL")).quote == quote

    @pytest.mark.asyncio
    async def test_same_day_hit_skips_upstream(self):
        upstream = MockProvider(prices={"AAPL": 190.0})
        provider, clock, _, _ = _cached(upstream)

        await provider.get_quote("AAPL")
        clock.advance(hours=6)
        await provider.get_quote("AAPL")

        assert upstream.quote_calls == ["AAPL"]

    @pytest.mark.asyncio
    async def test_next_day_refetches(self):
        upstream = MockProvider(prices={"AAPL": 190.0})
        provider, clock, quotes, _ = _cached(upstream)

        await provider.get_quote("AAPL")
        clock.advance(days=1)
        await provider.get_quote("AAPL")

        assert upstream.quote_calls == ["AAPL", "AAPL"]
        assert await quotes.count() == 1

    @pytest.mark.asyncio
    async def test_symbol_is_uppercased(self):
        upstream = MockProvider(prices={"AAPL": 190.0})
        provider, _, quotes, _ = _cached(upstream)

        await provider.get_quote(" aapl ")

        assert upstream.quote_calls == ["AAPL"]
        assert await quotes.get("AAPL") is not None

    @pytest.mark.asyncio
    async def test_not_found_propagates_and_is_not_cached(self):
        upstream = MockProvider()
        provider, _, quotes, _ = _cached(upstream)

        with pytest.raises(SymbolNotFoundError):
            await provider.get_quote("ZZZZ")
        assert await quotes.count() == 0

    @pytest.mark.asyncio
    async def test_rate_limit_propagates_distinctly(self):
        upstream = MockProvider(failures={"AAPL": RateLimitedError("slow down")})
        provider, _, _, _ = _cached(upstream)

        with pytest.raises(RateLimitedError):
            await provider.get_quote("AAPL")
        assert upstream.quote_calls == ["AAPL"]  # no retry

    def test_name(self):
        provider, _, _, _ = _cached(MockProvider())
        assert provider.name == "cached_mock"


# ── Search ───────────────────────────────────────────────────────────────


class TestSearch:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self):
        upstream = MockProvider(search_results={"apple": make_matches(6)})
        provider, clock, _, searches = _cached(upstream)

        first = await provider.search("apple")
        clock.advance(days=6)
        second = await provider.search("apple")

        assert first == second
        assert upstream.search_calls == ["apple"]
        assert await searches.count() == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self):
        upstream = MockProvider(search_results={"apple": make_matches(6)})
        provider, clock, _, _ = _cached(upstream)

        await provider.search("apple")
        clock.advance(days=8)
        await provider.search("apple")

        assert upstream.search_calls == ["apple", "apple"]

    @pytest.mark.asyncio
    async def test_fresh_but_underpopulated_is_a_miss(self):
        stored = SearchCacheEntry("apple", make_matches(4), T0 - timedelta(hours=1))
        upstream = MockProvider(search_results={"apple": make_matches(7, prefix="AA")})
        provider, _, _, searches = _cached(upstream, searches=[stored])

        results = await provider.search("apple")

        assert len(results) == 7
        assert upstream.search_calls == ["apple"]
        assert len((await searches.get("apple")).results) == 7

    @pytest.mark.asyncio
    async def test_underpopulated_entry_stays_when_refetch_is_empty(self):
        stored = SearchCacheEntry("apple", make_matches(3), T0 - timedelta(hours=1))
        provider, _, _, searches = _cached(MockProvider(), searches=[stored])

        assert await provider.search("apple") == []
        assert len((await searches.get("apple")).results) == 3

    @pytest.mark.asyncio
    async def test_empty_results_are_not_cached(self):
        upstream = MockProvider()
        provider, _, _, searches = _cached(upstream)

        assert await provider.search("nothing") == []
        assert await searches.get("nothing") is None
        assert await provider.search("nothing") == []
        assert upstream.search_calls == ["nothing", "nothing"]

    @pytest.mark.asyncio
    async def test_small_result_set_is_cached_but_refetched(self):
        upstream = MockProvider(search_results={"zq": make_matches(2)})
        provider, _, _, searches = _cached(upstream)

        await provider.search("zq")
        await provider.search("zq")

        assert await searches.get("zq") is not None
        assert upstream.search_calls == ["zq", "zq"]

    @pytest.mark.asyncio
    async def test_query_is_not_normalized(self):
        upstream = MockProvider(search_results={"Apple": make_matches(5), "apple": make_matches(5)})
        provider, _, _, searches = _cached(upstream)

        await provider.search("Apple")
        await provider.search("apple")

        assert upstream.search_calls == ["Apple", "apple"]
        assert await searches.count() == 2

    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self):
        provider, _, _, _ = _cached(MockProvider(search_error=UpstreamError("bad gateway")))
        with pytest.raises(UpstreamError):
            await provider.search("apple")


# ── Batch quotes ─────────────────────────────────────────────────────────


class TestGetMultipleQuotes:

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_batch(self):
        upstream = MockProvider(
            prices={"AAA": 1.0, "BBB": 2.0, "CCC": 3.0},
            failures={"BBB": upstream_down("BBB")},
        )
        provider, _, quotes, _ = _cached(upstream)

        result = await provider.get_multiple_quotes(["AAA", "BBB", "CCC"])

        assert [q.symbol for q in result] == ["AAA", "CCC"]
        assert await quotes.get("BBB") is None

    @pytest.mark.asyncio
    async def test_not_found_and_rate_limit_are_isolated_too(self):
        upstream = MockProvider(
            prices={"AAA": 1.0},
            failures={"RRR": RateLimitedError("throttled")},
        )
        provider, _, _, _ = _cached(upstream)

        result = await provider.get_multiple_quotes(["NOPE", "RRR", "AAA"])

        assert [q.symbol for q in result] == ["AAA"]

    @pytest.mark.asyncio
    async def test_only_misses_are_fetched(self):
        upstream = MockProvider(prices={"AAA": 1.0, "BBB": 2.0, "CCC": 3.0})
        provider, _, _, _ = _cached(upstream)

        await provider.get_quote("BBB")
        upstream.quote_calls.clear()

        result = await provider.get_multiple_quotes(["AAA", "BBB", "CCC"])

        assert upstream.quote_calls == ["AAA", "CCC"]
        # hits first, then fetched misses in input order
        assert [q.symbol for q in result] == ["BBB", "AAA", "CCC"]

    @pytest.mark.asyncio
    async def test_each_symbol_appears_once(self):
        upstream = MockProvider(prices={"AAA": 1.0, "BBB": 2.0})
        provider, _, _, _ = _cached(upstream)

        result = await provider.get_multiple_quotes(["AAA", "aaa", "BBB", "AAA", ""])

        assert [q.symbol for q in result] == ["AAA", "BBB"]
        assert upstream.quote_calls == ["AAA", "BBB"]

    @pytest.mark.asyncio
    async def test_partition(self):
        upstream = MockProvider(prices={"AAA": 1.0, "BBB": 2.0})
        provider, _, _, _ = _cached(upstream)
        await provider.get_quote("AAA")

        hits, misses = await provider.partition(["aaa", "BBB", "CCC"])

        assert [q.symbol for q in hits] == ["AAA"]
        assert misses == ["BBB", "CCC"]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        upstream = MockProvider()
        provider, _, _, _ = _cached(upstream)
        assert await provider.get_multiple_quotes([]) == []
        assert upstream.quote_calls == []
