"""Account repository - reads and atomic writes on the users table.

Accounts are keyed by the auth provider's user id (``clerk_id``). Billing
handlers may also address an account through its payment-provider
subscription id.
"""

import logging
from typing import Optional

from sqlalchemy import select, update

from src.core.usage.exceptions import TierNotFound
from src.core.usage.schemas import (
    Account,
    CustomEndpointOverride,
    SubscriptionStatus,
    Tier,
    UsageCounters,
)

from ..connection import db
from ..models import UserModel
from ..utils import with_db_retry

logger = logging.getLogger(__name__)


def _to_account(row: UserModel) -> Account:
    """
    Convert a users row into an Account snapshot.

    Raises:
        TierNotFound: If the stored tier is not a known tier
    """
    try:
        tier = Tier.parse(row.subscription_tier)
    except ValueError:
        logger.error(f"Account {row.clerk_id} has unknown tier {row.subscription_tier!r}")
        raise TierNotFound(row.subscription_tier) from None

    try:
        status = SubscriptionStatus(row.subscription_status or SubscriptionStatus.INACTIVE.value)
    except ValueError:
        status = SubscriptionStatus.INACTIVE

    return Account(
        user_id=row.clerk_id,
        tier=tier,
        message_count=row.message_count or 0,
        workflow_count=row.workflow_count or 0,
        subscription_status=status,
        override=CustomEndpointOverride(
            enabled=bool(row.use_custom_n8n),
            endpoint=row.custom_n8n_endpoint or None,
            api_key=row.custom_n8n_api_key or None,
        ),
        stripe_customer_id=row.stripe_customer_id,
        stripe_subscription_id=row.stripe_subscription_id,
    )


# =============================================================================
# READS
# =============================================================================


@with_db_retry
async def get_account_by_user_id(user_id: str) -> Optional[Account]:
    """
    Get an account by user id.

    Args:
        user_id: Identity resolved by the auth layer

    Returns:
        Account snapshot, or None if no row exists or the database is disabled
    """
    async with db.session() as session:
        if session is None:
            return None

        stmt = select(UserModel).where(UserModel.clerk_id == user_id)
        result = await session.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_account(row) if row else None


# =============================================================================
# USAGE COUNTERS
# =============================================================================


async def increment_usage(user_id: str, increment_workflow: bool = False) -> Optional[UsageCounters]:
    """
    Atomically increment the account's usage counters.

    Always increments message_count; also increments workflow_count when
    ``increment_workflow`` is set. Not retried: a retry after a lost
    acknowledgement would double count.

    Args:
        user_id: Account to update
        increment_workflow: Whether this is a workflow execution

    Returns:
        Counter values after the increment, or None if no row matched
        or the database is disabled
    """
    values = {"message_count": UserModel.message_count + 1}
    if increment_workflow:
        values["workflow_count"] = UserModel.workflow_count + 1

    async with db.session() as session:
        if session is None:
            return None

        stmt = (
            update(UserModel)
            .where(UserModel.clerk_id == user_id)
            .values(**values)
            .returning(UserModel.message_count, UserModel.workflow_count)
        )
        result = await session.execute(stmt)
        row = result.first()
        if row is None:
            logger.warning(f"Usage increment matched no account: user={user_id}")
            return None
        return UsageCounters(message_count=row[0], workflow_count=row[1])


@with_db_retry
async def reset_usage_by_subscription_id(subscription_id: str) -> int:
    """
    Reset both usage counters for the account owning a subscription.

    Args:
        subscription_id: Payment-provider subscription id

    Returns:
        Number of rows updated (0 if the database is disabled)
    """
    async with db.session() as session:
        if session is None:
            return 0

        stmt = (
            update(UserModel)
            .where(UserModel.stripe_subscription_id == subscription_id)
            .values(message_count=0, workflow_count=0)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


# =============================================================================
# SUBSCRIPTION STATE
# =============================================================================


@with_db_retry
async def apply_checkout(
    user_id: str,
    tier: Tier,
    status: SubscriptionStatus,
    stripe_customer_id: Optional[str],
    stripe_subscription_id: Optional[str],
) -> int:
    """
    Record a completed checkout: link provider ids, set tier and status,
    and start a fresh usage period.

    Returns:
        Number of rows updated (0 if the database is disabled)
    """
    async with db.session() as session:
        if session is None:
            return 0

        stmt = (
            update(UserModel)
            .where(UserModel.clerk_id == user_id)
            .values(
                stripe_customer_id=stripe_customer_id,
                stripe_subscription_id=stripe_subscription_id,
                subscription_tier=tier.value,
                subscription_status=status.value,
                message_count=0,
                workflow_count=0,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


@with_db_retry
async def update_subscription_by_subscription_id(
    subscription_id: str,
    tier: Tier,
    status: SubscriptionStatus,
) -> int:
    """
    Set tier and status for the account owning a subscription.

    Usage counters are left untouched.

    Returns:
        Number of rows updated (0 if the database is disabled)
    """
    async with db.session() as session:
        if session is None:
            return 0

        stmt = (
            update(UserModel)
            .where(UserModel.stripe_subscription_id == subscription_id)
            .values(subscription_tier=tier.value, subscription_status=status.value)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


# =============================================================================
# CUSTOM ENDPOINT SETTINGS
# =============================================================================


@with_db_retry
async def update_custom_endpoint(user_id: str, override: CustomEndpointOverride) -> int:
    """
    Replace the account's custom automation endpoint settings.

    Empty strings are stored as NULL.

    Returns:
        Number of rows updated (0 if the database is disabled)
    """
    async with db.session() as session:
        if session is None:
            return 0

        stmt = (
            update(UserModel)
            .where(UserModel.clerk_id == user_id)
            .values(
                use_custom_n8n=override.enabled,
                custom_n8n_endpoint=override.endpoint or None,
                custom_n8n_api_key=override.api_key or None,
            )
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
