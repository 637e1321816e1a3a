"""Custom automation endpoint settings API endpoints."""

import logging

from fastapi import APIRouter, Depends

from src.core.usage import Account, CustomEndpointOverride, NotAuthorized, Tier
from src.db.repositories import update_custom_endpoint

from ..dependencies import get_account
from ..schemas.common import SuccessResponse
from ..schemas.errors import ACCOUNT_ERROR_RESPONSES, SETTINGS_ERROR_RESPONSES
from ..schemas.settings import CustomEndpointSettingsResponse, UpdateCustomEndpointRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/update-n8n-settings",
    response_model=SuccessResponse,
    responses=SETTINGS_ERROR_RESPONSES,
    operation_id="updateCustomEndpointSettings",
    summary="Update custom automation endpoint settings",
)
async def update_custom_endpoint_settings(
    request: UpdateCustomEndpointRequest,
    account: Account = Depends(get_account),
):
    """
    Enable, disable or change the account's own automation endpoint.

    Enabling requires the enterprise tier; disabling is allowed on any tier.
    Endpoint and key are only changed when present in the body.
    """
    if request.use_custom_n8n and account.tier is not Tier.ENTERPRISE:
        logger.warning(
            f"Custom endpoint rejected: user={account.user_id}, tier={account.tier.value}"
        )
        raise NotAuthorized(
            message="Custom n8n integration is only available for Enterprise tier",
            details={"tier": account.tier.value},
        )

    fields = request.model_fields_set
    override = CustomEndpointOverride(
        enabled=request.use_custom_n8n,
        endpoint=(
            request.custom_n8n_endpoint
            if "custom_n8n_endpoint" in fields
            else account.override.endpoint
        ),
        api_key=(
            request.custom_n8n_api_key
            if "custom_n8n_api_key" in fields
            else account.override.api_key
        ),
    )

    await update_custom_endpoint(account.user_id, override)
    logger.info(
        f"Custom endpoint settings updated: user={account.user_id}, enabled={override.enabled}"
    )
    return SuccessResponse(success=True, message="Settings updated")


@router.get(
    "/n8n-settings",
    response_model=CustomEndpointSettingsResponse,
    responses=ACCOUNT_ERROR_RESPONSES,
    operation_id="getCustomEndpointSettings",
    summary="Get custom automation endpoint settings",
)
async def get_custom_endpoint_settings(account: Account = Depends(get_account)):
    """
    Get the account's custom endpoint settings.

    The API key is never returned; `hasApiKey` tells whether one is stored.
    """
    return CustomEndpointSettingsResponse(
        use_custom_n8n=account.override.enabled,
        custom_n8n_endpoint=account.override.endpoint,
        has_api_key=bool(account.override.api_key),
        tier=account.tier.value,
    )
