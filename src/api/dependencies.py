"""Shared dependencies for API routes.

Identity: the upstream auth layer resolves the caller and forwards the
user id in a header (X-User-ID unless IDENTITY_HEADER says otherwise).
"""

import logging
import os

from fastapi import Depends, Request

from src.constants import DEFAULT_IDENTITY_HEADER
from src.core.billing import BillingSynchronizer, get_billing_synchronizer
from src.core.forwarding import DownstreamForwarder, get_forwarder
from src.core.usage import (
    Account,
    AccountNotFound,
    TierPolicyTable,
    Unauthenticated,
    UsageGate,
    get_tier_policy_table,
    get_usage_gate,
)
from src.db.repositories import get_account_by_user_id

logger = logging.getLogger(__name__)


# =============================================================================
# Identity
# =============================================================================


def get_identity_header() -> str:
    """Name of the header carrying the resolved user id."""
    return os.getenv("IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER)


async def get_user_id(request: Request) -> str:
    """
    Extract the resolved user id from the identity header.

    Raises:
        Unauthenticated: If the header is missing or blank
    """
    user_id = (request.headers.get(get_identity_header()) or "").strip()
    if not user_id:
        raise Unauthenticated()
    return user_id


async def get_account(user_id: str = Depends(get_user_id)) -> Account:
    """
    Load the caller's account.

    Raises:
        AccountNotFound: If no account row exists for the user id
        TierNotFound: If the stored tier is unknown
    """
    account = await get_account_by_user_id(user_id)
    if account is None:
        logger.warning(f"No account for user {user_id}")
        raise AccountNotFound(user_id)
    return account


# =============================================================================
# Core Services
# =============================================================================


def get_gate() -> UsageGate:
    """Get the process-wide usage gate."""
    return get_usage_gate()


def get_downstream_forwarder() -> DownstreamForwarder:
    """Get the process-wide downstream forwarder."""
    return get_forwarder()


def get_synchronizer() -> BillingSynchronizer:
    """Get the process-wide billing synchronizer."""
    return get_billing_synchronizer()


def get_policy_table() -> TierPolicyTable:
    """Get the tier policy table."""
    return get_tier_policy_table()
