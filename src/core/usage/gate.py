"""
Usage gate.

Decides whether an account may perform a chat or workflow action, resolves
where the call goes, and hands back a Decision whose commit updates the
counters once the downstream call has succeeded.

Check-then-increment is not atomic across requests: N concurrent requests
that all pass the check can overshoot the quota by up to N-1. A crash
between a successful forward and commit under-counts. Both are accepted.
"""

import logging
from urllib.parse import quote
from typing import Any, Awaitable, Callable, Dict, Optional

from src.constants import N8N_WEBHOOK_PATH, QUOTA_WARNING_THRESHOLD
from src.core.forwarding.config import ForwardingConfig, get_forwarding_config

from .exceptions import NotAuthorized, QuotaExceeded
from .schemas import (
    Account,
    ActionType,
    Decision,
    DownstreamTarget,
    TierPolicy,
    UsageCounters,
)
from .tier_policy import TierPolicyTable, get_tier_policy_table

logger = logging.getLogger(__name__)

IncrementUsageFn = Callable[..., Awaitable[Optional[UsageCounters]]]
AppendUsageEventFn = Callable[[str, ActionType, str, Dict[str, Any]], Awaitable[Any]]


class UsageGate:
    """
    Tier-based access control and usage metering for proxied calls.

    Check order per action type:
    - chat: quota, then model entitlement
    - workflow: entitlement (unless the enterprise override is active), then quota
    """

    def __init__(
        self,
        policy_table: TierPolicyTable,
        forwarding_config: ForwardingConfig,
        increment_usage: IncrementUsageFn,
        append_usage_event: AppendUsageEventFn,
    ):
        self._policies = policy_table
        self._config = forwarding_config
        self._increment_usage = increment_usage
        self._append_usage_event = append_usage_event

    def evaluate(self, account: Account, action_type: ActionType, target_id: str) -> Decision:
        """
        Evaluate a requested action for an account.

        Args:
            account: Account snapshot read for this request
            action_type: chat or workflow
            target_id: Model id or workflow id

        Returns:
            Decision with the resolved target and a commit callback

        Raises:
            TierNotFound: If the account's tier has no policy
            NotAuthorized: If the tier is not entitled to the target
            QuotaExceeded: If a counter has reached the tier quota
        """
        policy = self._policies.lookup(account.tier)

        if action_type is ActionType.CHAT:
            self._check_quota(account, action_type, policy)
            self._check_entitlement(account, action_type, target_id, policy)
        else:
            if account.uses_custom_endpoint():
                logger.debug(
                    f"Allow-list bypassed for custom endpoint: user={account.user_id}, "
                    f"workflow={target_id}"
                )
            else:
                self._check_entitlement(account, action_type, target_id, policy)
            self._check_quota(account, action_type, policy)

        self._warn_if_near_quota(account, policy)

        return Decision(
            account=account,
            action_type=action_type,
            target_id=target_id,
            target=self._resolve_target(account, action_type, target_id),
            quota=policy.daily_quota,
            _commit=self._make_commit(account, action_type, target_id),
        )

    def _check_entitlement(
        self,
        account: Account,
        action_type: ActionType,
        target_id: str,
        policy: TierPolicy,
    ) -> None:
        if target_id in policy.allowed(action_type):
            return
        logger.warning(
            f"Access denied: user={account.user_id}, tier={account.tier.value}, "
            f"{action_type.value}={target_id} not in allow-list"
        )
        raise NotAuthorized.for_target(action_type.value, target_id, account.tier.value)

    def _check_quota(self, account: Account, action_type: ActionType, policy: TierPolicy) -> None:
        quota = policy.daily_quota
        counters = [("messages", account.message_count)]
        if action_type is ActionType.WORKFLOW:
            counters.insert(0, ("workflows", account.workflow_count))

        for usage_type, current in counters:
            if current >= quota:
                logger.warning(
                    f"Quota exceeded: user={account.user_id}, tier={account.tier.value}, "
                    f"{usage_type}={current}/{quota}"
                )
                next_tier = account.tier.next_tier
                raise QuotaExceeded(
                    usage_type=usage_type,
                    current_usage=current,
                    limit=quota,
                    upgrade_tier=next_tier.value if next_tier else None,
                )

    def _warn_if_near_quota(self, account: Account, policy: TierPolicy) -> None:
        quota = policy.daily_quota
        if quota <= 0:
            return
        percentage = (account.message_count / quota) * 100
        if percentage >= QUOTA_WARNING_THRESHOLD:
            logger.warning(
                f"Usage at {percentage:.1f}% of quota: user={account.user_id}, "
                f"tier={account.tier.value}, messages={account.message_count}/{quota}"
            )

    def _resolve_target(
        self,
        account: Account,
        action_type: ActionType,
        target_id: str,
    ) -> DownstreamTarget:
        if action_type is ActionType.CHAT:
            headers = {
                "Content-Type": "application/json",
                "HTTP-Referer": self._config.public_base_url,
                "X-Title": self._config.app_title,
            }
            if self._config.openrouter_api_key:
                headers["Authorization"] = f"Bearer {self._config.openrouter_api_key}"
            return DownstreamTarget(url=self._config.openrouter_api_url, headers=headers)

        if account.uses_custom_endpoint():
            base_url = account.override.endpoint.strip().rstrip("/")
            api_key = account.override.api_key
            managed = False
        else:
            base_url = self._config.n8n_base_url.rstrip("/")
            api_key = self._config.n8n_api_key
            managed = True

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return DownstreamTarget(
            url=f"{base_url}/{N8N_WEBHOOK_PATH}/{quote(target_id, safe='')}",
            headers=headers,
            managed=managed,
        )

    def _make_commit(self, account: Account, action_type: ActionType, target_id: str):
        async def _commit(payload: Dict[str, Any]) -> Optional[UsageCounters]:
            counters = await self._increment_usage(
                account.user_id,
                increment_workflow=action_type is ActionType.WORKFLOW,
            )
            await self._append_usage_event(account.user_id, action_type, target_id, payload)
            if counters:
                logger.info(
                    f"Usage committed: user={account.user_id}, {action_type.value}={target_id}, "
                    f"messages={counters.message_count}, workflows={counters.workflow_count}"
                )
            return counters

        return _commit


# Process-wide gate
_usage_gate: Optional[UsageGate] = None


def get_usage_gate() -> UsageGate:
    """
    Get the process-wide usage gate, wired to the database repositories.

    Returns:
        UsageGate singleton
    """
    global _usage_gate
    if _usage_gate is None:
        from src.db.repositories import append_usage_event, increment_usage

        _usage_gate = UsageGate(
            policy_table=get_tier_policy_table(),
            forwarding_config=get_forwarding_config(),
            increment_usage=increment_usage,
            append_usage_event=append_usage_event,
        )
    return _usage_gate


def reset_usage_gate() -> None:
    """Drop the cached gate (tests only)."""
    global _usage_gate
    _usage_gate = None


__all__ = [
    "UsageGate",
    "get_usage_gate",
    "reset_usage_gate",
]
