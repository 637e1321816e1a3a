"""
Custom exceptions for the usage gate, forwarding and billing.

Every request-path failure is a GatewayError subclass carrying the HTTP
status it maps to and a JSON envelope builder used by the API layer.
"""

from typing import Optional, Dict, Any


class GatewayError(Exception):
    """Base exception for all request-terminal gateway errors."""

    kind: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_response_dict(self) -> Dict[str, Any]:
        """Convert to JSON error envelope body."""
        response: Dict[str, Any] = {
            "success": False,
            "error": self.kind,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class Unauthenticated(GatewayError):
    """Raised when no identity was resolved for the request."""

    kind = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message)


class AccountNotFound(GatewayError):
    """Raised when the identity has no account row."""

    kind = "account_not_found"
    status_code = 404

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(message="User not found", details={"user_id": user_id})


class NotAuthorized(GatewayError):
    """Raised when the account's tier is not entitled to the requested target."""

    kind = "not_authorized"
    status_code = 403

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details)

    @classmethod
    def for_target(cls, action_type: str, target_id: str, tier: str) -> "NotAuthorized":
        label = "Model" if action_type == "chat" else "Workflow"
        return cls(
            message=f"{label} {target_id} not available in your subscription tier",
            details={"action_type": action_type, "target_id": target_id, "tier": tier},
        )


class QuotaExceeded(GatewayError):
    """
    Raised when an account's usage counter has reached its tier quota.

    Contains details needed for HTTP 429 response with upgrade CTA.
    """

    kind = "quota_exceeded"
    status_code = 429

    def __init__(
        self,
        usage_type: str,
        current_usage: int,
        limit: int,
        upgrade_tier: Optional[str] = None,
    ):
        self.usage_type = usage_type
        self.current_usage = current_usage
        self.limit = limit
        self.upgrade_tier = upgrade_tier

        details: Dict[str, Any] = {
            "usage_type": usage_type,
            "current_usage": current_usage,
            "limit": limit,
        }
        if upgrade_tier:
            details["upgrade"] = {
                "tier": upgrade_tier,
                "message": f"Upgrade to {upgrade_tier.title()} for higher limits",
                "url": f"/pricing?upgrade={upgrade_tier}",
            }

        super().__init__(
            message="Rate limit exceeded for your subscription tier",
            details=details,
        )


class DownstreamError(GatewayError):
    """
    Raised when the forwarded call returned a non-2xx response.

    The downstream status and body are surfaced to the caller as-is.
    """

    kind = "downstream_error"

    def __init__(self, status: int, body: Any, message: str = "Error from downstream service"):
        self.status = status
        self.body = body
        self.status_code = status
        super().__init__(message=message)

    def to_response_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "details": self.body,
        }


class UpstreamUnreachable(GatewayError):
    """Raised when the forwarded call failed at the transport level."""

    kind = "upstream_unreachable"
    status_code = 500

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Downstream service unreachable: {reason}",
            details={"url": url},
        )


class InvalidSignature(GatewayError):
    """Raised when a billing webhook fails signature verification."""

    kind = "invalid_signature"
    status_code = 400

    def __init__(self, reason: str = "Webhook signature verification failed"):
        super().__init__(message=reason)


class TierNotFound(GatewayError):
    """Raised when an account references a tier with no configured policy."""

    kind = "tier_not_found"
    status_code = 500

    def __init__(self, tier: str):
        super().__init__(
            message=f"Subscription tier not configured: {tier}",
            details={"tier": tier},
        )


class TierPolicyConfigError(Exception):
    """Raised at startup when the tier policy configuration is incomplete or invalid."""


__all__ = [
    "GatewayError",
    "Unauthenticated",
    "AccountNotFound",
    "NotAuthorized",
    "QuotaExceeded",
    "DownstreamError",
    "UpstreamUnreachable",
    "InvalidSignature",
    "TierNotFound",
    "TierPolicyConfigError",
]
