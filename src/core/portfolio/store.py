"""Portfolio holdings — symbols a user watches, without quotes."""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.data.cache.base import Clock, normalize_symbol, utc_now
from src.core.db.session import store_session
from src.core.db.tables import HoldingRow
from src.core.errors import HoldingExistsError


@dataclass
class Holding:
    symbol: str
    company_name: str
    added_at: datetime


class PortfolioStore(ABC):

    @abstractmethod
    async def list_holdings(self, user_id: str) -> list[Holding]:
        """Holdings in the order they were added."""
        ...

    @abstractmethod
    async def add_holding(self, user_id: str, symbol: str, company_name: str) -> Holding:
        """Raises HoldingExistsError when the symbol is already held (case-insensitive)."""
        ...

    @abstractmethod
    async def remove_holding(self, user_id: str, symbol: str) -> bool:
        ...


class MemoryPortfolioStore(PortfolioStore):

    def __init__(self, clock: Clock = utc_now):
        self._lock = threading.Lock()
        self._holdings: dict[str, list[Holding]] = {}
        self._clock = clock

    async def list_holdings(self, user_id: str) -> list[Holding]:
        with self._lock:
            return [replace(h) for h in self._holdings.get(user_id, [])]

    async def add_holding(self, user_id: str, symbol: str, company_name: str) -> Holding:
        symbol = normalize_symbol(symbol)
        with self._lock:
            held = self._holdings.setdefault(user_id, [])
            if any(h.symbol == symbol for h in held):
                raise HoldingExistsError(symbol)
            holding = Holding(symbol=symbol, company_name=company_name, added_at=self._clock())
            held.append(holding)
            return replace(holding)

    async def remove_holding(self, user_id: str, symbol: str) -> bool:
        symbol = normalize_symbol(symbol)
        with self._lock:
            held = self._holdings.get(user_id, [])
            kept = [h for h in held if h.symbol != symbol]
            self._holdings[user_id] = kept
            return len(kept) != len(held)


class SQLPortfolioStore(PortfolioStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utc_now):
        self._sessions = session_factory
        self._clock = clock

    async def list_holdings(self, user_id: str) -> list[Holding]:
        async with store_session(self._sessions) as session:
            rows = await session.scalars(
                select(HoldingRow).where(HoldingRow.user_id == user_id).order_by(HoldingRow.id)
            )
            return [
                Holding(symbol=r.symbol, company_name=r.company_name, added_at=r.added_at)
                for r in rows
            ]

    async def add_holding(self, user_id: str, symbol: str, company_name: str) -> Holding:
        symbol = normalize_symbol(symbol)
        holding = Holding(symbol=symbol, company_name=company_name, added_at=self._clock())
        try:
            async with store_session(self._sessions) as session:
                session.add(HoldingRow(user_id=user_id, **vars(holding)))
        except IntegrityError as e:
            raise HoldingExistsError(symbol) from e
        return holding

    async def remove_holding(self, user_id: str, symbol: str) -> bool:
        async with store_session(self._sessions) as session:
            result = await session.execute(
                delete(HoldingRow).where(
                    HoldingRow.user_id == user_id,
                    func.upper(HoldingRow.symbol) == normalize_symbol(symbol),
                )
            )
            return result.rowcount > 0
