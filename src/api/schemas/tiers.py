"""Subscription tier listing schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class TierResponse(BaseModel):
    """Subscription tier information."""
    id: str = Field(..., description="Tier identifier (standard, pro, enterprise)")
    name: str = Field(..., description="Display name")
    daily_quota: int = Field(..., description="Messages per billing period")
    allowed_models: List[str] = Field(default_factory=list)
    allowed_workflows: List[str] = Field(default_factory=list)
    custom_endpoint: bool = Field(False, description="Whether custom automation endpoints are allowed")
    highlighted: bool = Field(False, description="Whether this tier is highlighted (popular)")


class TiersListResponse(BaseModel):
    """Response for listing all available tiers."""
    success: bool
    tiers: List[TierResponse] = Field(default_factory=list)
    error: Optional[str] = None
