"""SQLAlchemy-backed cache stores (PostgreSQL in production, SQLite in tests).

Upserts are a single INSERT ... ON CONFLICT DO UPDATE against the unique
key index, so concurrent writers for one key end up as last-write-wins on a
single row instead of duplicates.
"""
from __future__ import annotations

from datetime import datetime, tzinfo

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

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
from src.core.db.session import store_session
from src.core.db.tables import QuoteCacheRow, SearchCacheRow


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ValueError(f"Upsert not supported on dialect {dialect!r}")
    return insert


def _quote_entry(row: QuoteCacheRow) -> QuoteCacheEntry:
    return QuoteCacheEntry(
        symbol=row.symbol,
        quote=StockQuote.from_dict(row.quote),
        last_updated=row.last_updated,
        cache_date=row.cache_date,
        id=row.id,
    )


def _search_entry(row: SearchCacheRow) -> SearchCacheEntry:
    return SearchCacheEntry(
        query=row.query,
        results=[SymbolMatch.from_dict(r) for r in row.results],
        last_updated=row.last_updated,
        id=row.id,
    )


class SQLQuoteCacheStore(QuoteCacheStore):

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utc_now,
        quote_tz: tzinfo | None = None,
    ):
        self._sessions = session_factory
        self._clock = clock
        self._quote_tz = quote_tz

    async def get(self, symbol: str) -> QuoteCacheEntry | None:
        async with store_session(self._sessions) as session:
            row = await session.scalar(
                select(QuoteCacheRow).where(QuoteCacheRow.symbol == symbol).limit(1)
            )
            return _quote_entry(row) if row else None

    async def upsert(self, symbol: str, quote: StockQuote) -> QuoteCacheEntry:
        now = self._clock()
        values = {
            "symbol": symbol,
            "quote": quote.to_dict(),
            "last_updated": now,
            "cache_date": quote_day(now, self._quote_tz),
        }
        async with store_session(self._sessions) as session:
            insert = _insert_for(session)
            stmt = insert(QuoteCacheRow).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[QuoteCacheRow.symbol],
                set_={k: stmt.excluded[k] for k in ("quote", "last_updated", "cache_date")},
            ).returning(QuoteCacheRow.id)
            row_id = (await session.execute(stmt)).scalar_one()
        return QuoteCacheEntry(
            symbol=symbol,
            quote=quote,
            last_updated=now,
            cache_date=values["cache_date"],
            id=row_id,
        )

    async def delete_by_symbol(self, symbol: str) -> bool:
        async with store_session(self._sessions) as session:
            result = await session.execute(delete(QuoteCacheRow).where(QuoteCacheRow.symbol == symbol))
            return result.rowcount > 0

    async def delete_all(self) -> int:
        async with store_session(self._sessions) as session:
            result = await session.execute(delete(QuoteCacheRow))
            return result.rowcount

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with store_session(self._sessions) as session:
            result = await session.execute(
                delete(QuoteCacheRow).where(QuoteCacheRow.last_updated < cutoff)
            )
            return result.rowcount

    async def count(self) -> int:
        async with store_session(self._sessions) as session:
            return await session.scalar(select(func.count()).select_from(QuoteCacheRow))

    async def list_entries(self) -> list[QuoteCacheEntry]:
        async with store_session(self._sessions) as session:
            rows = await session.scalars(select(QuoteCacheRow).order_by(QuoteCacheRow.id))
            return [_quote_entry(r) for r in rows]

    async def delete_ids(self, ids: list[int]) -> int:
        if not ids:
            return 0
        async with store_session(self._sessions) as session:
            result = await session.execute(delete(QuoteCacheRow).where(QuoteCacheRow.id.in_(ids)))
            return result.rowcount


class SQLSearchCacheStore(SearchCacheStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utc_now):
        self._sessions = session_factory
        self._clock = clock

    async def get(self, query: str) -> SearchCacheEntry | None:
        async with store_session(self._sessions) as session:
            row = await session.scalar(
                select(SearchCacheRow).where(SearchCacheRow.query == query).limit(1)
            )
            return _search_entry(row) if row else None

    async def upsert(self, query: str, results: list[SymbolMatch]) -> SearchCacheEntry:
        now = self._clock()
        async with store_session(self._sessions) as session:
            insert = _insert_for(session)
            stmt = insert(SearchCacheRow).values(
                query=query,
                results=[r.to_dict() for r in results],
                last_updated=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[SearchCacheRow.query],
                set_={k: stmt.excluded[k] for k in ("results", "last_updated")},
            ).returning(SearchCacheRow.id)
            row_id = (await session.execute(stmt)).scalar_one()
        return SearchCacheEntry(query=query, results=list(results), last_updated=now, id=row_id)

    async def delete_by_query(self, query: str) -> bool:
        async with store_session(self._sessions) as session:
            result = await session.execute(delete(SearchCacheRow).where(SearchCacheRow.query == query))
            return result.rowcount > 0

    async def delete_all(self) -> int:
        async with store_session(self._sessions) as session:
            result = await session.execute(delete(SearchCacheRow))
            return result.rowcount

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with store_session(self._sessions) as session:
            result = await session.execute(
                delete(SearchCacheRow).where(SearchCacheRow.last_updated < cutoff)
            )
            return result.rowcount

    async def count(self) -> int:
        async with store_session(self._sessions) as session:
            return await session.scalar(select(func.count()).select_from(SearchCacheRow))

    async def total_results(self) -> int:
        async with store_session(self._sessions) as session:
            total = await session.scalar(
                select(func.coalesce(func.sum(func.json_array_length(SearchCacheRow.results)), 0))
            )
            return int(total)
