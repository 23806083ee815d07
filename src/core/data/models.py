"""Quote and symbol-search records as the cache and providers see them."""
from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class StockQuote:
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

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> StockQuote:
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    name: str
    exchange: str
    asset_type: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SymbolMatch:
        return cls(
            symbol=data["symbol"],
            name=data["name"],
            exchange=data["exchange"],
            asset_type=data["asset_type"],
        )
