"""
Tier policy table.

Built once from environment configuration at process start and read-only
afterwards. Startup fails if any tier is missing or misconfigured.
"""

import logging
import os
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from src.constants import (
    DEFAULT_TIER_MODELS,
    DEFAULT_TIER_QUOTAS,
    DEFAULT_TIER_WORKFLOWS,
)
from src.utils.env_utils import parse_list_env

from .exceptions import TierNotFound, TierPolicyConfigError
from .schemas import Tier, TierPolicy

logger = logging.getLogger(__name__)


class TierPolicyTable:
    """Immutable mapping from tier to its policy."""

    def __init__(self, policies: Mapping[Tier, TierPolicy]):
        missing = [tier.value for tier in Tier if tier not in policies]
        if missing:
            raise TierPolicyConfigError(
                f"No policy configured for tier(s): {', '.join(missing)}"
            )
        self._policies: Mapping[Tier, TierPolicy] = MappingProxyType(dict(policies))

    def lookup(self, tier: Tier) -> TierPolicy:
        """
        Get the policy for a tier.

        Raises:
            TierNotFound: If the tier has no policy
        """
        try:
            return self._policies[tier]
        except KeyError:
            raise TierNotFound(getattr(tier, "value", str(tier))) from None

    def tiers(self) -> List[TierPolicy]:
        """All policies in tier order."""
        return [self._policies[tier] for tier in Tier]


def _parse_quota(tier: Tier) -> int:
    key = f"{tier.value.upper()}_RATE_LIMIT"
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return DEFAULT_TIER_QUOTAS[tier.value]
    try:
        quota = int(raw)
    except ValueError:
        raise TierPolicyConfigError(f"{key} must be an integer, got {raw!r}") from None
    if quota < 0:
        raise TierPolicyConfigError(f"{key} must be non-negative, got {quota}")
    return quota


def _parse_allow_list(tier: Tier, kind: str, defaults: Dict[str, List[str]]) -> frozenset:
    key = f"{tier.value.upper()}_ALLOWED_{kind}"
    values = parse_list_env(key, defaults.get(tier.value))
    if not values:
        raise TierPolicyConfigError(f"{key} resolved to an empty allow-list")
    return frozenset(values)


def load_tier_policies() -> TierPolicyTable:
    """
    Build the tier policy table from environment configuration.

    Environment variables (all optional, defaults in src.constants):
        {TIER}_RATE_LIMIT: integer quota per billing period
        {TIER}_ALLOWED_MODELS: comma-separated chat model ids
        {TIER}_ALLOWED_WORKFLOWS: comma-separated workflow ids

    Raises:
        TierPolicyConfigError: If any tier is missing or invalid
    """
    policies = {}
    for tier in Tier:
        policies[tier] = TierPolicy(
            tier=tier,
            daily_quota=_parse_quota(tier),
            allowed_models=_parse_allow_list(tier, "MODELS", DEFAULT_TIER_MODELS),
            allowed_workflows=_parse_allow_list(tier, "WORKFLOWS", DEFAULT_TIER_WORKFLOWS),
        )
        logger.info(
            f"Tier policy loaded: tier={tier.value}, quota={policies[tier].daily_quota}, "
            f"models={len(policies[tier].allowed_models)}, "
            f"workflows={len(policies[tier].allowed_workflows)}"
        )

    return TierPolicyTable(policies)


# Process-wide table, set once at startup
_tier_policy_table: Optional[TierPolicyTable] = None


def get_tier_policy_table() -> TierPolicyTable:
    """
    Get the process-wide tier policy table, loading it on first use.

    Returns:
        TierPolicyTable singleton
    """
    global _tier_policy_table
    if _tier_policy_table is None:
        _tier_policy_table = load_tier_policies()
    return _tier_policy_table


def reset_tier_policy_table() -> None:
    """Drop the cached table (tests only)."""
    global _tier_policy_table
    _tier_policy_table = None


__all__ = [
    "TierPolicyTable",
    "load_tier_policies",
    "get_tier_policy_table",
    "reset_tier_policy_table",
]
