"""Endpoint model - a registered URL being monitored."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Endpoint(BaseModel):
    """
    Endpoint registered for monitoring.

    Instances are immutable; the registry is the only place that creates
    or destroys them.

    Attributes:
        id: Unique identifier, fixed for the endpoint's lifetime
        url: Absolute URL to probe
        display_name: Human-readable name (defaults to the URL)
        created_at: Timestamp when the endpoint was registered
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    display_name: str
    created_at: datetime

    def __repr__(self) -> str:
        """String representation of endpoint."""
        return f"<Endpoint(id='{self.id}', display_name='{self.display_name}', url='{self.url}')>"
