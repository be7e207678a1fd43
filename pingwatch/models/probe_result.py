"""ProbeResult model - outcome of a single reachability check."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProbeOutcome(str, Enum):
    """Classification of a probe."""
    SUCCESS = "success"
    ERROR = "error"


class ProbeResult(BaseModel):
    """
    Result of probing one endpoint.

    Attributes:
        id: Unique identifier of the result
        endpoint_id: Id of the endpoint that was probed (a value, not a live reference)
        timestamp: When the probe resolved
        outcome: SUCCESS or ERROR
        response_time_ms: Elapsed milliseconds from dispatch to resolution
        status_code: HTTP status code, real or synthesised for failures
        error_message: Failure description, only set for ERROR outcomes
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    endpoint_id: str = Field(..., min_length=1)
    timestamp: datetime
    outcome: ProbeOutcome
    response_time_ms: int = Field(..., ge=0)
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    @model_validator(mode="after")
    def error_message_only_on_error(self) -> "ProbeResult":
        if self.outcome is ProbeOutcome.SUCCESS and self.error_message is not None:
            raise ValueError("error_message is only allowed on error outcomes")
        return self

    @property
    def is_success(self) -> bool:
        return self.outcome is ProbeOutcome.SUCCESS

    def __repr__(self) -> str:
        """String representation of probe result."""
        return (
            f"<ProbeResult(id='{self.id}', endpoint_id='{self.endpoint_id}', "
            f"outcome={self.outcome.value}, status_code={self.status_code})>"
        )
