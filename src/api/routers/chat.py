"""Chat proxy API endpoint.

Forwards chat completions to the model provider for entitled accounts and
meters them against the tier quota.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from src.constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from src.core.forwarding import DownstreamForwarder
from src.core.usage import Account, ActionType, UsageGate

from ..dependencies import get_account, get_downstream_forwarder, get_gate
from ..schemas.chat import ChatRequest
from ..schemas.errors import PROXY_ERROR_RESPONSES

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/chat",
    response_model=Any,
    responses=PROXY_ERROR_RESPONSES,
    operation_id="createChatCompletion",
    summary="Run a chat completion",
)
async def create_chat_completion(
    request: ChatRequest,
    account: Account = Depends(get_account),
    gate: UsageGate = Depends(get_gate),
    forwarder: DownstreamForwarder = Depends(get_downstream_forwarder),
):
    """
    Run a chat completion through the model provider.

    The quota is checked before the model entitlement, so an exhausted
    account gets 429 whatever model it asks for.

    Returns the provider's JSON response unchanged.
    """
    model = request.model or forwarder.config.default_chat_model
    decision = gate.evaluate(account, ActionType.CHAT, model)

    messages = [message.model_dump() for message in request.messages]
    payload = {
        "messages": messages,
        "model": model,
        "temperature": DEFAULT_TEMPERATURE if request.temperature is None else request.temperature,
        "max_tokens": DEFAULT_MAX_TOKENS if request.max_tokens is None else request.max_tokens,
    }

    return await forwarder.forward(
        decision,
        payload,
        snapshot={"model": model, "messages": messages},
    )
