"""Usage summary API schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class UsageEventResponse(BaseModel):
    """One recorded chat or workflow call."""
    id: str
    action_type: str = Field(..., examples=["chat"])
    target_id: str = Field(..., examples=["openai/gpt-3.5-turbo"])
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class UsageSummaryResponse(BaseModel):
    """Caller's tier, counters and most recent activity."""
    success: bool = True
    user_id: str
    tier: str = Field(..., examples=["pro"])
    subscription_status: str = Field(..., examples=["active"])
    message_count: int = Field(..., examples=[42])
    workflow_count: int = Field(..., examples=[7])
    quota: int = Field(..., examples=[1000])
    remaining: int = Field(..., examples=[958])
    percentage_used: float = Field(..., examples=[4.2])
    recent_events: List[UsageEventResponse] = Field(default_factory=list)
