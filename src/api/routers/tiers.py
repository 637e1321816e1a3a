"""Subscription Tiers API endpoints.

Public endpoint (no auth required) for retrieving available subscription tiers.
Used by the pricing page to display plan options.
"""

import logging

from fastapi import APIRouter, Depends

from src.core.usage import Tier, TierPolicyTable

from ..dependencies import get_policy_table
from ..schemas.tiers import TierResponse, TiersListResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "",
    response_model=TiersListResponse,
    operation_id="listTiers",
    summary="List available subscription tiers",
)
async def list_tiers(policies: TierPolicyTable = Depends(get_policy_table)):
    """
    Get all subscription tiers with their quota and allowed targets.

    This is a **public endpoint** - no authentication required.
    """
    tiers = [
        TierResponse(
            id=policy.tier.value,
            name=policy.tier.value.title(),
            daily_quota=policy.daily_quota,
            allowed_models=sorted(policy.allowed_models),
            allowed_workflows=sorted(policy.allowed_workflows),
            custom_endpoint=policy.tier is Tier.ENTERPRISE,
            highlighted=policy.tier is Tier.PRO,  # Pro tier is highlighted
        )
        for policy in policies.tiers()
    ]
    return TiersListResponse(success=True, tiers=tiers)
