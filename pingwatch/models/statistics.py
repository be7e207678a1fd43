"""Derived statistics models. Never persisted."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Statistics(BaseModel):
    """
    Aggregate health metrics for one endpoint's slice of history.

    Latency fields are None when there are no successful results;
    success_rate_percent is None when there are no results at all.
    """

    model_config = ConfigDict(frozen=True)

    endpoint_id: Optional[str] = None
    sample_count: int
    avg_response_time_ms: Optional[int] = None
    min_response_time_ms: Optional[int] = None
    max_response_time_ms: Optional[int] = None
    success_rate_percent: Optional[int] = None


class MonitorSummary(BaseModel):
    """Overall health across all registered endpoints."""

    model_config = ConfigDict(frozen=True)

    total_endpoints: int
    healthy_endpoints: int
    unhealthy_endpoints: int
    unknown_endpoints: int
    history_size: int
