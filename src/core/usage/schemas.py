"""
Domain types for usage metering and access control.

Account snapshots, tier/action enums, downstream targets and the
Decision returned by the usage gate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional

from pydantic import BaseModel


class Tier(str, Enum):
    """Subscription tiers."""
    STANDARD = "standard"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tier":
        """
        Parse a stored tier string.

        NULL/empty is read as standard. Unknown values raise ValueError.
        """
        if not value:
            return cls.STANDARD
        return cls(value.strip().lower())

    @property
    def next_tier(self) -> Optional["Tier"]:
        """Tier to suggest when this one's quota is exhausted."""
        if self is Tier.STANDARD:
            return Tier.PRO
        if self is Tier.PRO:
            return Tier.ENTERPRISE
        return None


class ActionType(str, Enum):
    """Kinds of metered actions."""
    CHAT = "chat"
    WORKFLOW = "workflow"


class SubscriptionStatus(str, Enum):
    """Account subscription status values."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELED = "canceled"
    PAST_DUE = "past_due"

    @classmethod
    def from_provider(cls, value: Optional[str]) -> "SubscriptionStatus":
        """Normalize a payment-provider subscription status."""
        normalized = (value or "").strip().lower()
        if normalized in ("active", "trialing"):
            return cls.ACTIVE
        if normalized in ("past_due", "unpaid"):
            return cls.PAST_DUE
        if normalized in ("canceled", "cancelled", "incomplete_expired"):
            return cls.CANCELED
        return cls.INACTIVE


@dataclass(frozen=True)
class CustomEndpointOverride:
    """User-supplied automation endpoint (enterprise only)."""
    enabled: bool = False
    endpoint: Optional[str] = None
    api_key: Optional[str] = None

    @property
    def has_endpoint(self) -> bool:
        return bool(self.endpoint and self.endpoint.strip())


@dataclass(frozen=True)
class Account:
    """Snapshot of an account row as read at the start of a request."""
    user_id: str
    tier: Tier = Tier.STANDARD
    message_count: int = 0
    workflow_count: int = 0
    subscription_status: SubscriptionStatus = SubscriptionStatus.INACTIVE
    override: CustomEndpointOverride = field(default_factory=CustomEndpointOverride)
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None

    def uses_custom_endpoint(self) -> bool:
        """True when workflow calls go to the account's own automation endpoint."""
        return (
            self.tier is Tier.ENTERPRISE
            and self.override.enabled
            and self.override.has_endpoint
        )


@dataclass(frozen=True)
class DownstreamTarget:
    """Resolved outbound call target."""
    url: str
    headers: Dict[str, str]
    managed: bool = True


@dataclass(frozen=True)
class UsageCounters:
    """Counter values returned by an atomic increment or reset."""
    message_count: int
    workflow_count: int


CommitCallback = Callable[[Dict[str, Any]], Awaitable[Optional[UsageCounters]]]


@dataclass
class Decision:
    """
    Allow decision produced by the usage gate.

    Carries the resolved downstream target and a commit callback that must
    be awaited only after the downstream call succeeded.
    """
    account: Account
    action_type: ActionType
    target_id: str
    target: DownstreamTarget
    quota: int
    _commit: CommitCallback = field(repr=False)
    committed: bool = False

    async def commit(self, payload: Dict[str, Any]) -> Optional[UsageCounters]:
        """Increment counters and append the usage event. Runs at most once."""
        if self.committed:
            return None
        self.committed = True
        return await self._commit(payload)


class TierPolicy(BaseModel):
    """Allowed targets and quota for one tier."""
    tier: Tier
    daily_quota: int
    allowed_models: FrozenSet[str]
    allowed_workflows: FrozenSet[str]

    model_config = {"frozen": True}

    def allowed(self, action_type: ActionType) -> FrozenSet[str]:
        if action_type is ActionType.CHAT:
            return self.allowed_models
        return self.allowed_workflows


class UsageEventRecord(BaseModel):
    """Audit row for one successfully forwarded call."""
    user_id: str
    action_type: ActionType
    target_id: str
    payload: Dict[str, Any]
    created_at: Optional[datetime] = None
