"""Cache maintenance — eviction, statistics, invalidation and duplicate repair.

None of this is on the request path; it is triggered operationally through
the /cache endpoints or scripts/cache_maintenance.py.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import polars as pl
import structlog

from src.core.data.cache.base import (
    Clock,
    QuoteCacheEntry,
    QuoteCacheStore,
    SearchCacheStore,
    normalize_symbol,
    utc_now,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheStats:
    search_entries: int
    search_results: int  # sum of result-list lengths, not a row count
    quote_entries: int


@dataclass(frozen=True)
class ReconcileReport:
    duplicates_found: int  # distinct symbols that had more than one row
    entries_removed: int


def stale_duplicate_ids(entries: list[QuoteCacheEntry]) -> pl.DataFrame:
    """Rows to delete so each symbol keeps only its newest row.

    Newest = greatest last_updated, ties broken by the greatest store id.
    Returns a frame with columns id, symbol.
    """
    if not entries:
        return pl.DataFrame(schema={"id": pl.Int64, "symbol": pl.Utf8})

    frame = pl.DataFrame({
        "id": [e.id for e in entries],
        "symbol": [e.symbol for e in entries],
        "last_updated": [e.last_updated for e in entries],
    })
    ranked = frame.sort(["symbol", "last_updated", "id"], descending=[False, True, True])
    keep = ranked.unique(subset="symbol", keep="first", maintain_order=True)
    return ranked.join(keep.select("id"), on="id", how="anti").select("id", "symbol")


class CacheMaintenance:

    def __init__(self, quotes: QuoteCacheStore, searches: SearchCacheStore, clock: Clock = utc_now):
        self._quotes = quotes
        self._searches = searches
        self._clock = clock

    async def clear_older_than(self, days_old: int = 7) -> int:
        cutoff = self._clock() - timedelta(days=days_old)
        removed_search = await self._searches.delete_older_than(cutoff)
        removed_quote = await self._quotes.delete_older_than(cutoff)
        total = removed_search + removed_quote
        logger.info(
            "cache.evicted",
            cutoff=cutoff.isoformat(),
            total=total,
            search=removed_search,
            quote=removed_quote,
        )
        return total

    async def get_stats(self) -> CacheStats:
        return CacheStats(
            search_entries=await self._searches.count(),
            search_results=await self._searches.total_results(),
            quote_entries=await self._quotes.count(),
        )

    async def invalidate_query(self, query: str) -> bool:
        cleared = await self._searches.delete_by_query(query)
        logger.info("cache.invalidated", kind="search", query=query, cleared=cleared)
        return cleared

    async def invalidate_symbol(self, symbol: str) -> bool:
        symbol = normalize_symbol(symbol)
        cleared = await self._quotes.delete_by_symbol(symbol)
        logger.info("cache.invalidated", kind="quote", symbol=symbol, cleared=cleared)
        return cleared

    async def clear_all_quotes(self) -> int:
        removed = await self._quotes.delete_all()
        logger.info("cache.cleared", kind="quote", removed=removed)
        return removed

    async def reconcile_duplicates(self) -> ReconcileReport:
        """Repair symbols that ended up with several quote rows, keeping the newest."""
        stale = stale_duplicate_ids(await self._quotes.list_entries())
        if stale.is_empty():
            logger.info("cache.reconcile", duplicates_found=0, entries_removed=0)
            return ReconcileReport(duplicates_found=0, entries_removed=0)

        per_symbol = stale.group_by("symbol", maintain_order=True).len()
        for row in per_symbol.iter_rows(named=True):
            logger.info("cache.reconcile.symbol", symbol=row["symbol"], removed=row["len"])

        removed = await self._quotes.delete_ids(stale["id"].to_list())
        report = ReconcileReport(duplicates_found=per_symbol.height, entries_removed=removed)
        logger.info(
            "cache.reconcile",
            duplicates_found=report.duplicates_found,
            entries_removed=report.entries_removed,
        )
        return report
