"""Custom automation endpoint settings schemas."""

from typing import Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

_url_adapter = TypeAdapter(AnyUrl)


class UpdateCustomEndpointRequest(BaseModel):
    """Request to change the account's custom automation endpoint.

    Endpoint and key are written only when present; an empty string clears them.
    """
    model_config = ConfigDict(populate_by_name=True)

    use_custom_n8n: bool = Field(..., alias="useCustomN8n", examples=[True])
    custom_n8n_endpoint: Optional[str] = Field(
        default=None,
        alias="customN8nEndpoint",
        description="Base URL of the account's own automation engine, or empty",
        examples=["https://automation.example.com"],
    )
    custom_n8n_api_key: Optional[str] = Field(
        default=None,
        alias="customN8nApiKey",
        description="Bearer credential for the custom endpoint, or empty",
    )

    @field_validator("custom_n8n_endpoint")
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return v
        v = v.strip()
        try:
            _url_adapter.validate_python(v)
        except ValidationError:
            raise ValueError("Must be a valid URL or empty") from None
        return v


class CustomEndpointSettingsResponse(BaseModel):
    """Current custom endpoint settings. The key itself is never returned."""
    success: bool = True
    use_custom_n8n: bool = Field(..., serialization_alias="useCustomN8n")
    custom_n8n_endpoint: Optional[str] = Field(default=None, serialization_alias="customN8nEndpoint")
    has_api_key: bool = Field(default=False, serialization_alias="hasApiKey")
    tier: str
