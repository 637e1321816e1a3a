"""Tests for the tier policy table and its environment loader."""

import pytest

from src.core.usage import (
    Tier,
    TierNotFound,
    TierPolicy,
    TierPolicyConfigError,
    TierPolicyTable,
    get_tier_policy_table,
    load_tier_policies,
    reset_tier_policy_table,
)


class TestLoadTierPolicies:
    """Tests for load_tier_policies."""

    def test_defaults_cover_every_tier(self):
        table = load_tier_policies()

        assert table.lookup(Tier.STANDARD).daily_quota == 100
        assert table.lookup(Tier.PRO).daily_quota == 1000
        assert table.lookup(Tier.ENTERPRISE).daily_quota == 10000

    def test_default_allow_lists(self):
        table = load_tier_policies()

        standard = table.lookup(Tier.STANDARD)
        assert standard.allowed_workflows == frozenset({"basic-chat", "simple-rag"})
        assert "openai/gpt-4" not in standard.allowed_models
        assert "openai/gpt-4" in table.lookup(Tier.ENTERPRISE).allowed_models
        assert "anthropic/claude-2" in table.lookup(Tier.PRO).allowed_models

    def test_quota_from_environment(self, monkeypatch):
        monkeypatch.setenv("PRO_RATE_LIMIT", "250")

        table = load_tier_policies()

        assert table.lookup(Tier.PRO).daily_quota == 250

    def test_allow_list_from_environment(self, monkeypatch):
        monkeypatch.setenv("STANDARD_ALLOWED_MODELS", " openai/gpt-4o-mini , openai/gpt-3.5-turbo,")

        table = load_tier_policies()

        assert table.lookup(Tier.STANDARD).allowed_models == frozenset(
            {"openai/gpt-4o-mini", "openai/gpt-3.5-turbo"}
        )

    def test_non_integer_quota_fails(self, monkeypatch):
        monkeypatch.setenv("STANDARD_RATE_LIMIT", "lots")

        with pytest.raises(TierPolicyConfigError, match="STANDARD_RATE_LIMIT"):
            load_tier_policies()

    def test_negative_quota_fails(self, monkeypatch):
        monkeypatch.setenv("ENTERPRISE_RATE_LIMIT", "-1")

        with pytest.raises(TierPolicyConfigError, match="non-negative"):
            load_tier_policies()

    def test_empty_allow_list_fails(self, monkeypatch):
        monkeypatch.setenv("PRO_ALLOWED_WORKFLOWS", " , ")

        with pytest.raises(TierPolicyConfigError, match="PRO_ALLOWED_WORKFLOWS"):
            load_tier_policies()

    def test_zero_quota_is_allowed(self, monkeypatch):
        monkeypatch.setenv("STANDARD_RATE_LIMIT", "0")

        assert load_tier_policies().lookup(Tier.STANDARD).daily_quota == 0


class TestTierPolicyTable:
    """Tests for TierPolicyTable."""

    def _policy(self, tier: Tier) -> TierPolicy:
        return TierPolicy(
            tier=tier,
            daily_quota=10,
            allowed_models=frozenset({"m"}),
            allowed_workflows=frozenset({"w"}),
        )

    def test_missing_tier_fails_at_construction(self):
        with pytest.raises(TierPolicyConfigError, match="enterprise"):
            TierPolicyTable({
                Tier.STANDARD: self._policy(Tier.STANDARD),
                Tier.PRO: self._policy(Tier.PRO),
            })

    def test_lookup_unknown_tier_raises(self, policy_table):
        with pytest.raises(TierNotFound) as exc_info:
            policy_table.lookup("platinum")

        assert exc_info.value.status_code == 500

    def test_table_is_read_only(self, policy_table):
        with pytest.raises(TypeError):
            policy_table._policies[Tier.STANDARD] = self._policy(Tier.STANDARD)

    def test_policy_is_frozen(self, policy_table):
        policy = policy_table.lookup(Tier.STANDARD)

        with pytest.raises(Exception):
            policy.daily_quota = 1

    def test_tiers_in_order(self, policy_table):
        assert [p.tier for p in policy_table.tiers()] == [Tier.STANDARD, Tier.PRO, Tier.ENTERPRISE]


class TestTierPolicySingleton:
    """Tests for the process-wide table accessor."""

    def test_loaded_once(self):
        first = get_tier_policy_table()

        assert get_tier_policy_table() is first

    def test_reset_reloads(self, monkeypatch):
        first = get_tier_policy_table()
        monkeypatch.setenv("STANDARD_RATE_LIMIT", "5")
        reset_tier_policy_table()

        second = get_tier_policy_table()

        assert second is not first
        assert second.lookup(Tier.STANDARD).daily_quota == 5
