"""Billing webhook schemas."""

from pydantic import BaseModel


class WebhookAckResponse(BaseModel):
    """Acknowledgement returned to the payment provider."""
    received: bool = True
    event_type: str
    handled: bool = False
