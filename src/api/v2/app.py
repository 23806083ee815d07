"""FastAPI application — folio quote cache API v2."""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.v2 import cache, portfolio, stocks
from src.api.v2.errors import register_error_handlers
from src.core.config import settings
from src.core.data import get_engine, uses_sql
from src.core.db.session import create_tables
from src.core.logging import configure_logging

configure_logging(settings.log_level, json=settings.log_json)
logger = structlog.get_logger()

VERSION = "2.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("startup", version=VERSION, cache_backend=settings.cache_backend)
    if uses_sql() and settings.auto_create_tables:
        await create_tables(get_engine())
    yield
    if uses_sql():
        await get_engine().dispose()
    logger.info("shutdown")


app = FastAPI(
    title="Folio Quote API",
    version=VERSION,
    description="Portfolio tracker backend with a cache-first market data layer",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stocks.router, prefix="/api/v2")
app.include_router(cache.router, prefix="/api/v2")
app.include_router(portfolio.router, prefix="/api/v2")

register_error_handlers(app)


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}
