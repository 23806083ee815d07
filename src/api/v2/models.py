"""Pydantic request/response models — camelCase on the wire, as the UI expects."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ── Stocks ───────────────────────────────────────────────────────────────


class Quote(ApiModel):
    symbol: str
    price: float
    change: float
    change_percent: float
    company_name: str
    market_cap: float | None = None
    volume: float | None = None
    high: float | None = None
    low: float | None = None
    open: float | None = None
    previous_close: float | None = None


class SearchResult(ApiModel):
    symbol: str
    name: str
    exchange: str
    asset_type: str


# ── Cache maintenance ────────────────────────────────────────────────────


class CacheStats(ApiModel):
    search_entries: int
    search_results: int
    quote_entries: int


class ReconcileReport(ApiModel):
    duplicates_found: int
    entries_removed: int


class RemovedCount(ApiModel):
    removed: int


class Cleared(ApiModel):
    cleared: bool


# ── Portfolio ────────────────────────────────────────────────────────────


class AddStockRequest(ApiModel):
    symbol: str = Field(min_length=1, max_length=32)
    company_name: str = Field(min_length=1, max_length=255)


class PortfolioStock(ApiModel):
    symbol: str
    company_name: str
    added_at: datetime
    quote: Quote | None = None


class Portfolio(ApiModel):
    user_id: str
    stocks: list[PortfolioStock] = Field(default_factory=list)
    total_value: float = 0
    total_change: float = 0
    total_change_percent: float = 0
