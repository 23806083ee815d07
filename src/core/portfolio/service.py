"""Portfolio view — holdings enriched with quotes from the cache-first provider."""
from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from src.core.data.models import StockQuote
from src.core.data.providers.cached import CachedQuoteProvider
from src.core.errors import HoldingNotFoundError
from src.core.portfolio.store import Holding, PortfolioStore

logger = structlog.get_logger()


@dataclass
class HoldingWithQuote:
    holding: Holding
    quote: StockQuote | None = None


@dataclass
class PortfolioView:
    user_id: str
    stocks: list[HoldingWithQuote] = field(default_factory=list)
    total_value: float = 0.0
    total_change: float = 0.0
    total_change_percent: float = 0.0


def summarize(user_id: str, holdings: list[Holding], quotes: list[StockQuote]) -> PortfolioView:
    by_symbol = {q.symbol.upper(): q for q in quotes}
    stocks = [HoldingWithQuote(h, by_symbol.get(h.symbol.upper())) for h in holdings]

    total_value = sum(s.quote.price for s in stocks if s.quote)
    total_change = sum(s.quote.change for s in stocks if s.quote)
    base = total_value - total_change
    pct = total_change / base * 100 if total_value > 0 and base != 0 else 0.0

    return PortfolioView(
        user_id=user_id,
        stocks=stocks,
        total_value=total_value,
        total_change=total_change,
        total_change_percent=pct,
    )


class PortfolioService:

    def __init__(self, store: PortfolioStore, quotes: CachedQuoteProvider):
        self._store = store
        self._quotes = quotes

    async def get_portfolio(self, user_id: str) -> PortfolioView:
        holdings = await self._store.list_holdings(user_id)
        if not holdings:
            return PortfolioView(user_id=user_id)
        quotes = await self._quotes.get_multiple_quotes([h.symbol for h in holdings])
        view = summarize(user_id, holdings, quotes)
        missing = [s.holding.symbol for s in view.stocks if s.quote is None]
        if missing:
            logger.warning("portfolio.quotes_missing", user_id=user_id, symbols=missing)
        return view

    async def add_stock(self, user_id: str, symbol: str, company_name: str) -> PortfolioView:
        holding = await self._store.add_holding(user_id, symbol, company_name)
        logger.info("portfolio.added", user_id=user_id, symbol=holding.symbol)
        return await self.get_portfolio(user_id)

    async def remove_stock(self, user_id: str, symbol: str) -> PortfolioView:
        if not await self._store.remove_holding(user_id, symbol):
            raise HoldingNotFoundError(symbol.upper())
        logger.info("portfolio.removed", user_id=user_id, symbol=symbol.upper())
        return await self.get_portfolio(user_id)
