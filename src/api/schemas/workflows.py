"""Workflow proxy API schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowRequest(BaseModel):
    """Request to execute an automation workflow through the gateway."""
    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(
        ...,
        alias="workflowId",
        description="Workflow identifier",
        examples=["simple-rag"],
    )
    inputs: Any = Field(
        default_factory=dict,
        description="JSON body passed to the workflow webhook",
        examples=[{"question": "What is our refund policy?"}],
    )

    @field_validator("workflow_id")
    @classmethod
    def validate_workflow_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Workflow ID is required")
        return v
