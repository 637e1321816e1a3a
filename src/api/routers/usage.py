"""Usage summary API endpoint.

Backs the dashboard: tier, counters, quota and recent activity for the caller.
"""

import logging

from fastapi import APIRouter, Depends

from src.constants import RECENT_USAGE_EVENTS_LIMIT
from src.core.usage import Account, TierPolicyTable
from src.db.repositories import list_recent_usage_events

from ..dependencies import get_account, get_policy_table
from ..schemas.errors import ACCOUNT_ERROR_RESPONSES
from ..schemas.usage import UsageEventResponse, UsageSummaryResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/summary",
    response_model=UsageSummaryResponse,
    responses=ACCOUNT_ERROR_RESPONSES,
    operation_id="getUsageSummary",
    summary="Get usage summary",
)
async def get_usage_summary(
    account: Account = Depends(get_account),
    policies: TierPolicyTable = Depends(get_policy_table),
):
    """
    Get the caller's subscription tier, usage counters and quota.

    Returns:
    - Tier and subscription status
    - Message and workflow counters against the tier quota
    - The most recent usage events
    """
    quota = policies.lookup(account.tier).daily_quota
    percentage = round((account.message_count / quota) * 100, 1) if quota > 0 else 100.0

    events = await list_recent_usage_events(account.user_id, limit=RECENT_USAGE_EVENTS_LIMIT)

    return UsageSummaryResponse(
        user_id=account.user_id,
        tier=account.tier.value,
        subscription_status=account.subscription_status.value,
        message_count=account.message_count,
        workflow_count=account.workflow_count,
        quota=quota,
        remaining=max(quota - account.message_count, 0),
        percentage_used=percentage,
        recent_events=[UsageEventResponse(**event) for event in events],
    )
