"""Stock endpoints — quotes and symbol search (cache-first)."""
from fastapi import APIRouter, Depends, Query

from src.api.v2.models import Quote, SearchResult
from src.core.data import get_provider
from src.core.data.providers.cached import CachedQuoteProvider

router = APIRouter(tags=["Stocks"])


@router.get("/stocks/quote/{symbol}", response_model=Quote)
async def get_quote(symbol: str, provider: CachedQuoteProvider = Depends(get_provider)):
    """Quote for one symbol, served from today's cache when available."""
    quote = await provider.get_quote(symbol)
    return Quote.model_validate(quote.to_dict())


@router.get("/stocks/quotes", response_model=list[Quote])
async def get_quotes(
    symbols: str = Query(..., description="Comma-separated symbols, e.g. AAPL,MSFT"),
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """Batch quotes. Symbols that cannot be fetched are left out of the response."""
    wanted = [s for s in symbols.split(",") if s.strip()]
    if not wanted:
        raise ValueError("symbols must contain at least one symbol")
    quotes = await provider.get_multiple_quotes(wanted)
    return [Quote.model_validate(q.to_dict()) for q in quotes]


@router.get("/stocks/search", response_model=list[SearchResult])
async def search_stocks(
    q: str = Query(..., min_length=1, description="Company name or ticker fragment"),
    provider: CachedQuoteProvider = Depends(get_provider),
):
    """Search symbols by query string. Matching is on the exact query as sent."""
    results = await provider.search(q)
    return [SearchResult.model_validate(r.to_dict()) for r in results]
