"""
Usage metering and access control module.

Provides the tier policy table, the usage gate that decides and meters
chat/workflow calls, and the gateway exception hierarchy.
"""

from .schemas import (
    Tier,
    ActionType,
    SubscriptionStatus,
    Account,
    CustomEndpointOverride,
    DownstreamTarget,
    UsageCounters,
    Decision,
    TierPolicy,
    UsageEventRecord,
)
from .exceptions import (
    GatewayError,
    Unauthenticated,
    AccountNotFound,
    NotAuthorized,
    QuotaExceeded,
    DownstreamError,
    UpstreamUnreachable,
    InvalidSignature,
    TierNotFound,
    TierPolicyConfigError,
)
from .tier_policy import (
    TierPolicyTable,
    load_tier_policies,
    get_tier_policy_table,
    reset_tier_policy_table,
)
from .gate import UsageGate, get_usage_gate, reset_usage_gate

__all__ = [
    # Schemas
    "Tier",
    "ActionType",
    "SubscriptionStatus",
    "Account",
    "CustomEndpointOverride",
    "DownstreamTarget",
    "UsageCounters",
    "Decision",
    "TierPolicy",
    "UsageEventRecord",
    # Exceptions
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
    # Tier policy
    "TierPolicyTable",
    "load_tier_policies",
    "get_tier_policy_table",
    "reset_tier_policy_table",
    # Gate
    "UsageGate",
    "get_usage_gate",
    "reset_usage_gate",
]
