"""Pydantic schemas for endpoint operations."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from pingwatch.models.endpoint import Endpoint


class EndpointCreate(BaseModel):
    """Schema for registering an endpoint."""
    url: str = Field(..., description="URL to monitor; https:// is assumed when no scheme is given")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")

    @field_validator('url')
    @classmethod
    def add_default_scheme(cls, v):
        v = v.strip()
        if v and "://" not in v:
            v = f"https://{v}"
        return v


class EndpointListResponse(BaseModel):
    """Schema for list of endpoints."""
    endpoints: List[Endpoint]
    total: int
