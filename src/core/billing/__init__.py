"""
Billing module.

Keeps account tier, status and usage periods in sync with Stripe.
"""

from .config import BillingConfig, get_billing_config, reset_billing_config
from .synchronizer import BillingSynchronizer, get_billing_synchronizer

__all__ = [
    "BillingConfig",
    "get_billing_config",
    "reset_billing_config",
    "BillingSynchronizer",
    "get_billing_synchronizer",
]
