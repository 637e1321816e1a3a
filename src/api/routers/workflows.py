"""Workflow proxy API endpoint.

Executes automation workflows on the managed engine, or on the account's
own engine when an enterprise account has enabled its custom endpoint.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from src.core.forwarding import DownstreamForwarder
from src.core.usage import Account, ActionType, UsageGate

from ..dependencies import get_account, get_downstream_forwarder, get_gate
from ..schemas.errors import PROXY_ERROR_RESPONSES
from ..schemas.workflows import WorkflowRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/n8n-proxy",
    response_model=Any,
    responses=PROXY_ERROR_RESPONSES,
    operation_id="executeWorkflow",
    summary="Execute an automation workflow",
)
async def execute_workflow(
    request: WorkflowRequest,
    account: Account = Depends(get_account),
    gate: UsageGate = Depends(get_gate),
    forwarder: DownstreamForwarder = Depends(get_downstream_forwarder),
):
    """
    Execute a workflow and return its webhook response.

    Enterprise accounts with an enabled custom endpoint may run any
    workflow id; everyone else is limited to their tier's allow-list.
    The entitlement is checked before the quota.
    """
    decision = gate.evaluate(account, ActionType.WORKFLOW, request.workflow_id)

    snapshot: Dict[str, Any] = {"inputs": request.inputs}
    if not decision.target.managed:
        snapshot["custom_endpoint"] = True

    return await forwarder.forward(decision, request.inputs, snapshot=snapshot)
