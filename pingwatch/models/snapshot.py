"""Full read-only copy of engine state."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from pingwatch.models.endpoint import Endpoint
from pingwatch.models.probe_result import ProbeResult


class MonitorSnapshot(BaseModel):
    """Endpoints in registration order and results most-recent-first."""

    model_config = ConfigDict(frozen=True)

    endpoints: List[Endpoint] = Field(default_factory=list)
    results: List[ProbeResult] = Field(default_factory=list)
