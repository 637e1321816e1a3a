"""Shared error response definitions for OpenAPI documentation.

Use these in FastAPI route definitions for consistent error documentation.
"""

from .common import ErrorResponse

# =============================================================================
# Base Error Responses
# =============================================================================

BASE_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request data"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

ACCOUNT_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    401: {"model": ErrorResponse, "description": "No resolved identity on the request"},
    404: {"model": ErrorResponse, "description": "No account for the identity"},
}

# =============================================================================
# API-Specific Error Responses
# =============================================================================

PROXY_ERROR_RESPONSES = {
    **ACCOUNT_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Target not available in the subscription tier"},
    429: {"model": ErrorResponse, "description": "Usage quota for the tier exhausted"},
    502: {"model": ErrorResponse, "description": "Downstream error (downstream status and body are passed through)"},
}

SETTINGS_ERROR_RESPONSES = {
    **ACCOUNT_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Custom endpoints require the enterprise tier"},
}

WEBHOOK_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid webhook signature"},
    500: {"model": ErrorResponse, "description": "Event could not be applied; the provider will retry"},
}
