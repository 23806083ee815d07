"""Cache store interfaces — one keyed record per symbol / per exact search query."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable

from src.core.data.models import StockQuote, SymbolMatch

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


@dataclass
class QuoteCacheEntry:
    symbol: str
    quote: StockQuote
    last_updated: datetime
    cache_date: date
    id: int | None = None


@dataclass
class SearchCacheEntry:
    query: str
    results: list[SymbolMatch] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)
    id: int | None = None


class QuoteCacheStore(ABC):
    """Quotes keyed by uppercase symbol. Every write is durable on return."""

    @abstractmethod
    async def get(self, symbol: str) -> QuoteCacheEntry | None:
        ...

    @abstractmethod
    async def upsert(self, symbol: str, quote: StockQuote) -> QuoteCacheEntry:
        """Replace (never merge) the record for symbol, stamping last_updated and cache_date."""
        ...

    @abstractmethod
    async def delete_by_symbol(self, symbol: str) -> bool:
        ...

    @abstractmethod
    async def delete_all(self) -> int:
        ...

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Remove records whose last_updated is strictly before cutoff."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...

    @abstractmethod
    async def list_entries(self) -> list[QuoteCacheEntry]:
        """Every stored row, duplicates included."""
        ...

    @abstractmethod
    async def delete_ids(self, ids: list[int]) -> int:
        ...


class SearchCacheStore(ABC):
    """Search result sets keyed by the exact query string as received."""

    @abstractmethod
    async def get(self, query: str) -> SearchCacheEntry | None:
        ...

    @abstractmethod
    async def upsert(self, query: str, results: list[SymbolMatch]) -> SearchCacheEntry:
        ...

    @abstractmethod
    async def delete_by_query(self, query: str) -> bool:
        ...

    @abstractmethod
    async def delete_all(self) -> int:
        ...

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        ...

    @abstractmethod
    async def count(self) -> int:
        ...

    @abstractmethod
    async def total_results(self) -> int:
        """Sum of len(results) across all entries."""
        ...
