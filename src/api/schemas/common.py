"""Common schema models shared across API endpoints."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field

from src.constants import SERVICE_VERSION


# =============================================================================
# Enums for Type Safety
# =============================================================================

class HealthStatusEnum(str, Enum):
    """Health status values for service components."""
    healthy = "healthy"
    unhealthy = "unhealthy"
    degraded = "degraded"


# =============================================================================
# Common Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = Field(default=False, examples=[False])
    error: str = Field(..., examples=["quota_exceeded"])
    message: Optional[str] = Field(default=None, examples=["Rate limit exceeded for your subscription tier"])
    details: Optional[Any] = None
    request_id: Optional[str] = Field(default=None, examples=["a1b2c3d4"])


class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = True
    message: Optional[str] = None


class HealthStatus(BaseModel):
    """Service health status."""
    status: HealthStatusEnum = Field(default=HealthStatusEnum.healthy, examples=["healthy"])
    version: str = Field(default=SERVICE_VERSION, examples=[SERVICE_VERSION])
    timestamp: datetime
    components: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
