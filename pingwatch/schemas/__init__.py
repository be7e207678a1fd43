"""Pydantic schemas for API request/response validation."""

from pingwatch.schemas.endpoint import (
    EndpointCreate,
    EndpointListResponse,
)
from pingwatch.schemas.stats import (
    HealthResponse,
    HistoryResponse,
    ProbeAllResponse,
    ProbeResponse,
    StatisticsListResponse,
)

__all__ = [
    "EndpointCreate",
    "EndpointListResponse",
    "HealthResponse",
    "HistoryResponse",
    "ProbeAllResponse",
    "ProbeResponse",
    "StatisticsListResponse",
]
