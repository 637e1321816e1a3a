"""Chat proxy API schemas."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Request Models
# =============================================================================

class ChatMessage(BaseModel):
    """One message of a chat conversation."""
    role: Literal["user", "assistant", "system"] = Field(..., examples=["user"])
    content: str = Field(..., examples=["Summarize the plot of Hamlet in two sentences."])


class ChatRequest(BaseModel):
    """Request to run a chat completion through the gateway.

    Unset model, temperature and max_tokens fall back to the gateway
    defaults (openai/gpt-3.5-turbo, 0.7, 1000).
    """
    messages: List[ChatMessage] = Field(..., description="Conversation so far")
    model: Optional[str] = Field(default=None, description="Model id", examples=["anthropic/claude-2"])
    temperature: Optional[float] = Field(default=None, description="Sampling temperature", examples=[0.7])
    max_tokens: Optional[int] = Field(default=None, description="Completion token limit", examples=[1000])
