"""Stripe webhook API endpoint.

Public endpoint; authenticity is established by the Stripe-Signature header.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from src.constants import STRIPE_SIGNATURE_HEADER
from src.core.billing import BillingSynchronizer

from ..dependencies import get_synchronizer
from ..schemas.billing import WebhookAckResponse
from ..schemas.errors import WEBHOOK_ERROR_RESPONSES

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/webhook",
    response_model=WebhookAckResponse,
    responses=WEBHOOK_ERROR_RESPONSES,
    operation_id="receiveStripeWebhook",
    summary="Receive a Stripe webhook event",
)
async def receive_stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias=STRIPE_SIGNATURE_HEADER),
    synchronizer: BillingSynchronizer = Depends(get_synchronizer),
):
    """
    Verify and apply a Stripe subscription lifecycle event.

    Handled events: checkout.session.completed, invoice.payment_succeeded,
    customer.subscription.updated, customer.subscription.deleted. Other
    events are acknowledged and ignored.
    """
    raw_body = await request.body()
    result = await synchronizer.handle(raw_body, stripe_signature)
    return WebhookAckResponse(**result)
