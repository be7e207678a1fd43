"""Endpoint management and probing API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from pingwatch.api.deps import get_engine
from pingwatch.core.engine import MonitorEngine
from pingwatch.core.registry import InvalidURLError
from pingwatch.models.endpoint import Endpoint
from pingwatch.schemas.endpoint import EndpointCreate, EndpointListResponse
from pingwatch.schemas.stats import ProbeAllResponse, ProbeResponse
from pingwatch.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/endpoints", response_model=EndpointListResponse)
async def list_endpoints(engine: MonitorEngine = Depends(get_engine)):
    """List all endpoints in registration order."""
    endpoints = engine.list_endpoints()
    return EndpointListResponse(endpoints=endpoints, total=len(endpoints))


@router.post("/endpoints", response_model=Endpoint, status_code=status.HTTP_201_CREATED)
async def create_endpoint(
    endpoint_data: EndpointCreate,
    engine: MonitorEngine = Depends(get_engine)
):
    """
    Register a new endpoint.

    Args:
        endpoint_data: URL and optional display name
        engine: Monitor engine
    """
    try:
        endpoint = engine.add_endpoint(endpoint_data.url, endpoint_data.name)
    except InvalidURLError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    await engine.save()
    return endpoint


@router.get("/endpoints/{endpoint_id}", response_model=Endpoint)
async def get_endpoint(endpoint_id: str, engine: MonitorEngine = Depends(get_engine)):
    """Get endpoint by ID."""
    endpoint = engine.get_endpoint(endpoint_id)
    if endpoint is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Endpoint {endpoint_id} not found"
        )
    return endpoint


@router.delete("/endpoints/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_endpoint(endpoint_id: str, engine: MonitorEngine = Depends(get_engine)):
    """Remove an endpoint together with its probe history."""
    if not engine.remove_endpoint(endpoint_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Endpoint {endpoint_id} not found"
        )

    await engine.save()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/endpoints/{endpoint_id}/probe", response_model=ProbeResponse)
async def probe_endpoint(
    endpoint_id: str,
    timeout_ms: Optional[int] = Query(default=None, ge=1, le=60000),
    engine: MonitorEngine = Depends(get_engine)
):
    """Probe one endpoint immediately."""
    result = await engine.probe_endpoint(endpoint_id, timeout_ms)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Endpoint {endpoint_id} not found"
        )

    await engine.save()
    return ProbeResponse(result=result, last_error=engine.last_error)


@router.post("/probe-all", response_model=ProbeAllResponse)
async def probe_all(
    timeout_ms: Optional[int] = Query(default=None, ge=1, le=60000),
    engine: MonitorEngine = Depends(get_engine)
):
    """
    Probe every registered endpoint.

    Returns 409 while another probe run is in progress.
    """
    if engine.is_probing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A probe run is already in progress"
        )

    results = await engine.probe_all(timeout_ms)
    await engine.save()

    failed = sum(1 for r in results if not r.is_success)
    logger.info(
        "Probe-all requested via API",
        extra={"total": len(results), "failed": failed}
    )

    return ProbeAllResponse(
        results=results,
        total=len(results),
        failed=failed,
        last_error=engine.last_error
    )
