"""Cache maintenance endpoints — operational use only."""
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from src.api.v2.models import CacheStats, Cleared, ReconcileReport, RemovedCount
from src.core.config import settings
from src.core.data import get_maintenance
from src.core.data.cache.maintenance import CacheMaintenance

router = APIRouter(tags=["Cache"])


@router.get("/cache/stats", response_model=CacheStats)
async def cache_stats(maintenance: CacheMaintenance = Depends(get_maintenance)):
    return CacheStats.model_validate(asdict(await maintenance.get_stats()))


@router.delete("/cache/old", response_model=RemovedCount)
async def clear_old_cache_entries(
    days_old: int = Query(settings.cache_eviction_days, ge=0),
    maintenance: CacheMaintenance = Depends(get_maintenance),
):
    """Evict quote and search entries last written more than days_old days ago."""
    return RemovedCount(removed=await maintenance.clear_older_than(days_old))


@router.delete("/cache/search", response_model=Cleared)
async def clear_cache_for_query(
    q: str = Query(..., min_length=1),
    maintenance: CacheMaintenance = Depends(get_maintenance),
):
    return Cleared(cleared=await maintenance.invalidate_query(q))


@router.delete("/cache/quotes/{symbol}", response_model=Cleared)
async def clear_cache_for_symbol(symbol: str, maintenance: CacheMaintenance = Depends(get_maintenance)):
    return Cleared(cleared=await maintenance.invalidate_symbol(symbol))


@router.delete("/cache/quotes", response_model=RemovedCount)
async def clear_all_quote_cache(maintenance: CacheMaintenance = Depends(get_maintenance)):
    return RemovedCount(removed=await maintenance.clear_all_quotes())


@router.post("/cache/reconcile", response_model=ReconcileReport)
async def cleanup_duplicates(maintenance: CacheMaintenance = Depends(get_maintenance)):
    """Remove duplicate quote rows, keeping the newest row per symbol."""
    report = await maintenance.reconcile_duplicates()
    return ReconcileReport.model_validate(asdict(report))
