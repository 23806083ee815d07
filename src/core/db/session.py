"""Async engine / session factory plus store-failure translation."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.db.tables import Base
from src.core.errors import StoreUnavailableError

logger = structlog.get_logger()


def make_engine(database_url: str, **kwargs) -> AsyncEngine:
    if not database_url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(database_url, **kwargs)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def store_session(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """One session = one transaction, committed on exit.

    Connection-level failures surface as StoreUnavailableError; everything
    else (integrity errors, programming errors) propagates untouched.
    """
    try:
        async with factory() as session:
            async with session.begin():
                yield session
    except (OperationalError, InterfaceError) as e:
        logger.error("store.unavailable", error=str(e))
        raise StoreUnavailableError(str(e)) from e
    except DBAPIError as e:
        if e.connection_invalidated:
            logger.error("store.unavailable", error=str(e))
            raise StoreUnavailableError(str(e)) from e
        raise
    except OSError as e:
        logger.error("store.unavailable", error=str(e))
        raise StoreUnavailableError(str(e)) from e
