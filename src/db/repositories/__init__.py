"""
Repository layer for database operations.

Provides async functions for:
- Account lookup, usage counters and subscription state
- Usage event audit rows
"""

from .account_repository import (
    get_account_by_user_id,
    increment_usage,
    reset_usage_by_subscription_id,
    apply_checkout,
    update_subscription_by_subscription_id,
    update_custom_endpoint,
)
from .usage_event_repository import (
    append_usage_event,
    list_recent_usage_events,
)

__all__ = [
    # Accounts
    "get_account_by_user_id",
    "increment_usage",
    "reset_usage_by_subscription_id",
    "apply_checkout",
    "update_subscription_by_subscription_id",
    "update_custom_endpoint",
    # Usage events
    "append_usage_event",
    "list_recent_usage_events",
]
