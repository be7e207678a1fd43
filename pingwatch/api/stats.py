"""History, statistics and export API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pingwatch.api.deps import get_engine
from pingwatch.core.engine import MonitorEngine
from pingwatch.models.snapshot import MonitorSnapshot
from pingwatch.models.statistics import MonitorSummary, Statistics
from pingwatch.schemas.stats import HistoryResponse, StatisticsListResponse

router = APIRouter()


def _require_endpoint(engine: MonitorEngine, endpoint_id: str) -> None:
    if engine.get_endpoint(endpoint_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Endpoint {endpoint_id} not found"
        )


@router.get("/endpoints/{endpoint_id}/history", response_model=HistoryResponse)
async def get_history(
    endpoint_id: str,
    limit: Optional[int] = Query(default=None, ge=1),
    engine: MonitorEngine = Depends(get_engine)
):
    """
    Get probe history for an endpoint, newest first.

    Args:
        endpoint_id: Endpoint ID
        limit: Maximum number of results to return
        engine: Monitor engine
    """
    _require_endpoint(engine, endpoint_id)
    results = engine.history_for(endpoint_id)
    total = len(results)
    if limit is not None:
        results = results[:limit]

    return HistoryResponse(endpoint_id=endpoint_id, results=results, total=total)


@router.get("/endpoints/{endpoint_id}/stats", response_model=Statistics)
async def get_statistics(endpoint_id: str, engine: MonitorEngine = Depends(get_engine)):
    """Statistics derived from the endpoint's current history."""
    _require_endpoint(engine, endpoint_id)
    return engine.statistics_for(endpoint_id)


@router.get("/stats", response_model=StatisticsListResponse)
async def get_all_statistics(engine: MonitorEngine = Depends(get_engine)):
    """Statistics for every endpoint in registration order."""
    return StatisticsListResponse(statistics=engine.statistics_all())


@router.get("/summary", response_model=MonitorSummary)
async def get_summary(engine: MonitorEngine = Depends(get_engine)):
    """Healthy / unhealthy / unknown counts based on each endpoint's latest probe."""
    return engine.summary()


@router.get("/export", response_model=MonitorSnapshot)
async def export_snapshot(engine: MonitorEngine = Depends(get_engine)):
    """Full snapshot of endpoints and results for external export."""
    return engine.snapshot()
