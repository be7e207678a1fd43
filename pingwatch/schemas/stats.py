"""Pydantic schemas for probe, history and health responses."""

from typing import List, Optional

from pydantic import BaseModel, Field

from pingwatch.models.probe_result import ProbeResult
from pingwatch.models.statistics import Statistics


class ProbeResponse(BaseModel):
    """Schema for a single probe."""
    result: ProbeResult
    last_error: Optional[str] = None


class ProbeAllResponse(BaseModel):
    """Schema for a probe-all run."""
    results: List[ProbeResult]
    total: int
    failed: int
    last_error: Optional[str] = None


class HistoryResponse(BaseModel):
    """Schema for an endpoint's probe history, newest first."""
    endpoint_id: str
    results: List[ProbeResult]
    total: int


class StatisticsListResponse(BaseModel):
    """Schema for statistics of every endpoint."""
    statistics: List[Statistics]


class HealthResponse(BaseModel):
    """Schema for health check response."""
    status: str = Field(default="healthy")
    version: str
    timestamp: str
    endpoints: int
    history_size: int
    probing: bool
    last_error: Optional[str] = None
    scheduler: str = Field(default="stopped")
