"""In-memory cache stores — lock-guarded row lists for development and tests.

Rows carry an auto-assigned id like a database would. The constructors accept
pre-existing rows, including several for one key, so data written before the
uniqueness rule existed can be represented and repaired.
"""
from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Iterable

from src.core.data.cache.base import (
    Clock,
    QuoteCacheEntry,
    QuoteCacheStore,
    SearchCacheEntry,
    SearchCacheStore,
    utc_now,
)
from src.core.data.cache.freshness import quote_day
from src.core.data.models import StockQuote, SymbolMatch


class MemoryQuoteCacheStore(QuoteCacheStore):

    def __init__(
        self,
        entries: Iterable[QuoteCacheEntry] = (),
        clock: Clock = utc_now,
        quote_tz: tzinfo | None = None,
    ):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._rows: list[QuoteCacheEntry] = [replace(e, id=next(self._ids)) for e in entries]
        self._clock = clock
        self._quote_tz = quote_tz

    async def get(self, symbol: str) -> QuoteCacheEntry | None:
        with self._lock:
            for row in self._rows:
                if row.symbol == symbol:
                    return replace(row)
        return None

    async def upsert(self, symbol: str, quote: StockQuote) -> QuoteCacheEntry:
        now = self._clock()
        with self._lock:
            for i, row in enumerate(self._rows):
                if row.symbol == symbol:
                    self._rows[i] = QuoteCacheEntry(
                        symbol=symbol,
                        quote=quote,
                        last_updated=now,
                        cache_date=quote_day(now, self._quote_tz),
                        id=row.id,
                    )
                    return replace(self._rows[i])
            entry = QuoteCacheEntry(
                symbol=symbol,
                quote=quote,
                last_updated=now,
                cache_date=quote_day(now, self._quote_tz),
                id=next(self._ids),
            )
            self._rows.append(entry)
            return replace(entry)

    async def delete_by_symbol(self, symbol: str) -> bool:
        with self._lock:
            before = len(self._rows)
            self._rows = [r for r in self._rows if r.symbol != symbol]
            return len(self._rows) != before

    async def delete_all(self) -> int:
        with self._lock:
            removed = len(self._rows)
            self._rows.clear()
        return removed

    async def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            before = len(self._rows)
            self._rows = [r for r in self._rows if not r.last_updated < cutoff]
            return before - len(self._rows)

    async def count(self) -> int:
        with self._lock:
            return len(self._rows)

    async def list_entries(self) -> list[QuoteCacheEntry]:
        with self._lock:
            return [replace(r) for r in self._rows]

    async def delete_ids(self, ids: list[int]) -> int:
        doomed = set(ids)
        with self._lock:
            before = len(self._rows)
            self._rows = [r for r in self._rows if r.id not in doomed]
            return before - len(self._rows)

    def __repr__(self) -> str:
        return f"MemoryQuoteCacheStore(rows={len(self._rows)})"


class MemorySearchCacheStore(SearchCacheStore):

    def __init__(self, entries: Iterable[SearchCacheEntry] = (), clock: Clock = utc_now):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._rows: dict[str, SearchCacheEntry] = {}
        for e in entries:
            self._rows[e.query] = replace(e, results=list(e.results), id=next(self._ids))
        self._clock = clock

    async def get(self, query: str) -> SearchCacheEntry | None:
        with self._lock:
            row = self._rows.get(query)
            return replace(row, results=list(row.results)) if row else None

    async def upsert(self, query: str, results: list[SymbolMatch]) -> SearchCacheEntry:
        with self._lock:
            existing = self._rows.get(query)
            entry = SearchCacheEntry(
                query=query,
                results=list(results),
                last_updated=self._clock(),
                id=existing.id if existing else next(self._ids),
            )
            self._rows[query] = entry
            return replace(entry, results=list(entry.results))

    async def delete_by_query(self, query: str) -> bool:
        with self._lock:
            return self._rows.pop(query, None) is not None

    async def delete_all(self) -> int:
        with self._lock:
            removed = len(self._rows)
            self._rows.clear()
        return removed

    async def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [q for q, r in self._rows.items() if r.last_updated < cutoff]
            for q in stale:
                del self._rows[q]
        return len(stale)

    async def count(self) -> int:
        with self._lock:
            return len(self._rows)

    async def total_results(self) -> int:
        with self._lock:
            return sum(len(r.results) for r in self._rows.values())
