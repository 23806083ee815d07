"""Error taxonomy shared by providers, stores and the API layer."""


class MarketDataError(Exception):
    """Base class for anything the upstream market-data provider signals."""


class SymbolNotFoundError(MarketDataError):

    def __init__(self, symbol: str):
        super().__init__(f"Symbol {symbol!r} not found")
        self.symbol = symbol


class RateLimitedError(MarketDataError):
    """Upstream throttled us. Callers should back off, we never retry."""


class UpstreamError(MarketDataError):
    """Network failure, unexpected status or malformed payload."""


class StoreUnavailableError(Exception):
    """Persistence layer unreachable. There is no local fallback."""


class HoldingExistsError(Exception):

    def __init__(self, symbol: str):
        super().__init__(f"{symbol} already exists in portfolio")
        self.symbol = symbol


class HoldingNotFoundError(Exception):

    def __init__(self, symbol: str):
        super().__init__(f"{symbol} not found in portfolio")
        self.symbol = symbol
