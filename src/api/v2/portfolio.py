"""Portfolio endpoints — the single implicit user's watchlist with live quotes."""
from fastapi import APIRouter, Depends

from src.api.v2.models import AddStockRequest, Portfolio, PortfolioStock, Quote
from src.core.config import settings
from src.core.data import get_portfolio_service
from src.core.portfolio.service import PortfolioService, PortfolioView

router = APIRouter(tags=["Portfolio"])


def _to_response(view: PortfolioView) -> Portfolio:
    return Portfolio(
        user_id=view.user_id,
        stocks=[
            PortfolioStock(
                symbol=s.holding.symbol,
                company_name=s.holding.company_name,
                added_at=s.holding.added_at,
                quote=Quote.model_validate(s.quote.to_dict()) if s.quote else None,
            )
            for s in view.stocks
        ],
        total_value=view.total_value,
        total_change=view.total_change,
        total_change_percent=view.total_change_percent,
    )


@router.get("/portfolio", response_model=Portfolio)
async def get_portfolio(service: PortfolioService = Depends(get_portfolio_service)):
    return _to_response(await service.get_portfolio(settings.default_user_id))


@router.post("/portfolio/stocks", response_model=Portfolio, status_code=201)
async def add_stock(body: AddStockRequest, service: PortfolioService = Depends(get_portfolio_service)):
    view = await service.add_stock(settings.default_user_id, body.symbol, body.company_name)
    return _to_response(view)


@router.delete("/portfolio/stocks/{symbol}", response_model=Portfolio)
async def remove_stock(symbol: str, service: PortfolioService = Depends(get_portfolio_service)):
    return _to_response(await service.remove_stock(settings.default_user_id, symbol))
