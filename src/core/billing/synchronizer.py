"""
Billing synchronizer.

Verifies Stripe webhook deliveries and applies subscription lifecycle
changes to the account store:

- checkout.session.completed: link Stripe ids, set tier, activate, reset counters
- invoice.payment_succeeded: reset counters for the paying subscription
- customer.subscription.updated: set tier and status
- customer.subscription.deleted: back to standard, canceled

There is no ordering against concurrent gate increments; the last write
wins per field.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import stripe
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.constants import (
    EVENT_CHECKOUT_COMPLETED,
    EVENT_INVOICE_PAID,
    EVENT_SUBSCRIPTION_DELETED,
    EVENT_SUBSCRIPTION_UPDATED,
)
from src.core.usage.exceptions import InvalidSignature
from src.core.usage.schemas import SubscriptionStatus, Tier

from .config import BillingConfig, get_billing_config

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[bool]]


def _first_price_id(subscription: Any) -> Optional[str]:
    """Price id of the subscription's first line item, if any."""
    try:
        return subscription["items"]["data"][0]["price"]["id"]
    except (KeyError, IndexError, TypeError):
        return None


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice, from the legacy field or the parent details."""
    subscription_id = invoice.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    if subscription_id:
        return subscription_id

    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    subscription_id = details.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    return subscription_id or None


class BillingSynchronizer:
    """Applies verified Stripe events to accounts."""

    def __init__(self, config: Optional[BillingConfig] = None, accounts: Any = None):
        self.config = config or get_billing_config()
        if accounts is None:
            from src.db import repositories as accounts
        self._accounts = accounts
        self._handlers: Dict[str, EventHandler] = {
            EVENT_CHECKOUT_COMPLETED: self._handle_checkout_completed,
            EVENT_INVOICE_PAID: self._handle_invoice_paid,
            EVENT_SUBSCRIPTION_UPDATED: self._handle_subscription_updated,
            EVENT_SUBSCRIPTION_DELETED: self._handle_subscription_deleted,
        }

    async def handle(self, raw_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and apply one webhook delivery.

        Args:
            raw_body: Raw request body bytes, exactly as received
            signature: Stripe-Signature header value

        Returns:
            {"received": True, "event_type": ..., "handled": bool}

        Raises:
            InvalidSignature: Missing or invalid signature, or unparseable body
        """
        event = self.verify(raw_body, signature)
        event_type = event.get("type", "")
        event_id = event.get("id")

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type} (id={event_id})")
            return {"received": True, "event_type": event_type, "handled": False}

        data_object = (event.get("data") or {}).get("object") or {}
        handled = await handler(data_object)
        logger.info(f"Stripe event processed: type={event_type}, id={event_id}, handled={handled}")
        return {"received": True, "event_type": event_type, "handled": handled}

    def verify(self, raw_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify the signature header and parse the event body.

        Raises:
            InvalidSignature: On any verification or parse failure
        """
        if not signature:
            logger.warning("Stripe webhook rejected: missing signature header")
            raise InvalidSignature("Missing Stripe-Signature header")
        if not self.config.stripe_webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET is not configured")
            raise InvalidSignature("Webhook secret not configured")

        try:
            payload = raw_body.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                payload,
                signature,
                self.config.stripe_webhook_secret,
                self.config.signature_tolerance_seconds,
            )
            event = json.loads(payload)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature verification failed: {e}")
            raise InvalidSignature(f"Webhook Error: {e}") from e
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning(f"Stripe webhook body could not be parsed: {e}")
            raise InvalidSignature(f"Webhook Error: {e}") from e

        if not isinstance(event, dict):
            raise InvalidSignature("Webhook Error: event body is not an object")
        return event

    def tier_for_price(self, price_id: Optional[str]) -> Tier:
        """Tier for a Stripe price id; unknown prices map to standard."""
        return Tier(self.config.price_to_tier().get(price_id or "", Tier.STANDARD.value))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(stripe.APIConnectionError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def retrieve_subscription(self, subscription_id: str) -> Any:
        """Read a subscription from the Stripe API."""
        return await asyncio.to_thread(
            stripe.Subscription.retrieve,
            subscription_id,
            api_key=self.config.stripe_secret_key,
        )

    async def _handle_checkout_completed(self, session: Dict[str, Any]) -> bool:
        user_id = session.get("client_reference_id")
        customer_id = session.get("customer")
        subscription_id = session.get("subscription")
        if isinstance(customer_id, dict):
            customer_id = customer_id.get("id")
        if isinstance(subscription_id, dict):
            subscription_id = subscription_id.get("id")

        if not user_id:
            logger.warning("checkout.session.completed without client_reference_id; ignoring")
            return False
        if not subscription_id:
            logger.warning(f"checkout.session.completed for user={user_id} has no subscription; ignoring")
            return False

        subscription = await self.retrieve_subscription(subscription_id)
        tier = self.tier_for_price(_first_price_id(subscription))

        updated = await self._accounts.apply_checkout(
            user_id=user_id,
            tier=tier,
            status=SubscriptionStatus.ACTIVE,
            stripe_customer_id=customer_id,
            stripe_subscription_id=subscription_id,
        )
        if not updated:
            logger.warning(f"Checkout completed for unknown user={user_id}")
            return False

        logger.info(f"Subscription created: user={user_id}, tier={tier.value}, subscription={subscription_id}")
        return True

    async def _handle_invoice_paid(self, invoice: Dict[str, Any]) -> bool:
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("invoice.payment_succeeded without subscription; nothing to reset")
            return False

        updated = await self._accounts.reset_usage_by_subscription_id(subscription_id)
        if not updated:
            logger.warning(f"Invoice paid for unknown subscription={subscription_id}")
            return False

        logger.info(f"Usage reset after invoice payment: subscription={subscription_id}")
        return True

    async def _handle_subscription_updated(self, subscription: Dict[str, Any]) -> bool:
        subscription_id = subscription.get("id")
        if not subscription_id:
            logger.warning("customer.subscription.updated without subscription id; ignoring")
            return False

        tier = self.tier_for_price(_first_price_id(subscription))
        status = SubscriptionStatus.from_provider(subscription.get("status"))

        updated = await self._accounts.update_subscription_by_subscription_id(
            subscription_id, tier=tier, status=status
        )
        if not updated:
            logger.warning(f"Subscription update for unknown subscription={subscription_id}")
            return False

        logger.info(
            f"Subscription updated: subscription={subscription_id}, tier={tier.value}, "
            f"status={status.value}"
        )
        return True

    async def _handle_subscription_deleted(self, subscription: Dict[str, Any]) -> bool:
        subscription_id = subscription.get("id")
        if not subscription_id:
            logger.warning("customer.subscription.deleted without subscription id; ignoring")
            return False

        updated = await self._accounts.update_subscription_by_subscription_id(
            subscription_id, tier=Tier.STANDARD, status=SubscriptionStatus.CANCELED
        )
        if not updated:
            logger.warning(f"Subscription deletion for unknown subscription={subscription_id}")
            return False

        logger.info(f"Subscription canceled: subscription={subscription_id}")
        return True


# Process-wide synchronizer
_synchronizer: Optional[BillingSynchronizer] = None


def get_billing_synchronizer() -> BillingSynchronizer:
    """Get the process-wide billing synchronizer."""
    global _synchronizer
    if _synchronizer is None:
        _synchronizer = BillingSynchronizer()
    return _synchronizer
