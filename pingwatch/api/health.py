"""Health and metrics endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from pingwatch import __version__
from pingwatch.api.deps import get_engine
from pingwatch.core.engine import MonitorEngine
from pingwatch.schemas.stats import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, engine: MonitorEngine = Depends(get_engine)):
    """
    Health check endpoint.

    Reports engine state and whether periodic probing is running.
    """
    scheduler = getattr(request.app.state, "scheduler", None)

    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        endpoints=len(engine.registry),
        history_size=len(engine.history),
        probing=engine.is_probing,
        last_error=engine.last_error,
        scheduler="running" if scheduler and scheduler.running else "stopped"
    )


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    """Prometheus metrics in text exposition format."""
    collector = request.app.state.metrics
    return Response(content=collector.export(), media_type=collector.content_type)
