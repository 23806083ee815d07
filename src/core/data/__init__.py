"""Data layer — cache-first quote access.

Design: ALL quote and search access goes through get_provider(), which
returns a CachedQuoteProvider wrapping the upstream FMP client. The cache
stores are checked first; only on a miss (or stale data) does it hit the
remote API. This means:
  • A portfolio page refresh costs at most one FMP call per symbol per day.
  • Search results are reused for a week once a query has enough matches.
  • Switching stores (SQL ↔ memory) is a settings change, not a code change.

Instances are built lazily on first use and shared across the process. The
API layer resolves them through FastAPI Depends so tests can override them.
"""
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine

from src.core.config import settings
from src.core.data.cache.base import QuoteCacheStore, SearchCacheStore
from src.core.data.cache.freshness import FreshnessPolicy
from src.core.data.cache.maintenance import CacheMaintenance
from src.core.data.cache.memory import MemoryQuoteCacheStore, MemorySearchCacheStore
from src.core.data.cache.sql import SQLQuoteCacheStore, SQLSearchCacheStore
from src.core.data.providers.cached import CachedQuoteProvider
from src.core.data.providers.fmp import FMPProvider
from src.core.db.session import make_engine, make_session_factory
from src.core.portfolio.service import PortfolioService
from src.core.portfolio.store import MemoryPortfolioStore, PortfolioStore, SQLPortfolioStore


def uses_sql() -> bool:
    return settings.cache_backend == "sql"


@lru_cache
def get_policy() -> FreshnessPolicy:
    return FreshnessPolicy.from_settings(settings)


@lru_cache
def get_engine() -> AsyncEngine:
    return make_engine(settings.database_url)


@lru_cache
def get_stores() -> tuple[QuoteCacheStore, SearchCacheStore]:
    quote_tz = get_policy().quote_tz
    if uses_sql():
        sessions = make_session_factory(get_engine())
        return SQLQuoteCacheStore(sessions, quote_tz=quote_tz), SQLSearchCacheStore(sessions)
    if settings.cache_backend == "memory":
        return MemoryQuoteCacheStore(quote_tz=quote_tz), MemorySearchCacheStore()
    raise ValueError(f"Unknown cache backend: {settings.cache_backend!r}")


@lru_cache
def get_provider() -> CachedQuoteProvider:
    """Return the default cache-first quote provider."""
    upstream = FMPProvider(
        api_key=settings.fmp_api_key,
        base_url=settings.fmp_base_url,
        rate_limit=settings.fmp_rate_limit,
        rate_period_s=settings.fmp_rate_period_s,
        timeout_s=settings.fmp_timeout_s,
    )
    quotes, searches = get_stores()
    return CachedQuoteProvider(upstream, quotes, searches, policy=get_policy())


@lru_cache
def get_maintenance() -> CacheMaintenance:
    quotes, searches = get_stores()
    return CacheMaintenance(quotes, searches)


@lru_cache
def get_portfolio_store() -> PortfolioStore:
    if uses_sql():
        return SQLPortfolioStore(make_session_factory(get_engine()))
    return MemoryPortfolioStore()


@lru_cache
def get_portfolio_service() -> PortfolioService:
    return PortfolioService(get_portfolio_store(), get_provider())
