"""Global error handlers."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.errors import (
    HoldingExistsError,
    HoldingNotFoundError,
    RateLimitedError,
    StoreUnavailableError,
    SymbolNotFoundError,
    UpstreamError,
)


def _error(status_code: int, code: str, exc: Exception, **details) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "code": code, "details": details},
    )


async def value_error_handler(request: Request, exc: ValueError):
    return _error(422, "VALIDATION_ERROR", exc)


async def symbol_not_found_handler(request: Request, exc: SymbolNotFoundError):
    return _error(404, "NOT_FOUND", exc, symbol=exc.symbol)


async def rate_limited_handler(request: Request, exc: RateLimitedError):
    return _error(429, "RATE_LIMITED", exc)


async def upstream_error_handler(request: Request, exc: UpstreamError):
    return _error(502, "UPSTREAM_FAILURE", exc)


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    return _error(503, "STORE_UNAVAILABLE", exc)


async def holding_exists_handler(request: Request, exc: HoldingExistsError):
    return _error(409, "CONFLICT", exc, symbol=exc.symbol)


async def holding_not_found_handler(request: Request, exc: HoldingNotFoundError):
    return _error(404, "NOT_FOUND", exc, symbol=exc.symbol)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(SymbolNotFoundError, symbol_not_found_handler)
    app.add_exception_handler(RateLimitedError, rate_limited_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(HoldingExistsError, holding_exists_handler)
    app.add_exception_handler(HoldingNotFoundError, holding_not_found_handler)
