"""Shared test fixtures and configuration."""

import os
from dataclasses import replace
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.constants import DEFAULT_TIER_MODELS, DEFAULT_TIER_QUOTAS, DEFAULT_TIER_WORKFLOWS
from src.core.forwarding import DownstreamForwarder, ForwardingConfig
from src.core.usage import (
    Account,
    ActionType,
    CustomEndpointOverride,
    SubscriptionStatus,
    Tier,
    TierPolicy,
    TierPolicyTable,
    UsageCounters,
    UsageGate,
)


TEST_USER_ID = "user_2abcDEF"

_CONFIG_ENV_VARS = [
    "IDENTITY_HEADER",
    "API_PREFIX",
    "OPENROUTER_API_URL",
    "OPENROUTER_API_KEY",
    "N8N_BASE_URL",
    "N8N_API_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_SECRET_KEY",
    "PRO_PLAN_ID",
    "ENTERPRISE_PLAN_ID",
    "STANDARD_PLAN_ID",
]


# =============================================================================
# Environment Variable Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear configuration environment variables that would change defaults."""
    for tier in Tier:
        prefix = tier.value.upper()
        monkeypatch.delenv(f"{prefix}_RATE_LIMIT", raising=False)
        monkeypatch.delenv(f"{prefix}_ALLOWED_MODELS", raising=False)
        monkeypatch.delenv(f"{prefix}_ALLOWED_WORKFLOWS", raising=False)
    for key in _CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


# =============================================================================
# Singleton Reset
# =============================================================================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset process-wide singletons before and after each test."""
    from src.core.billing import reset_billing_config
    from src.core.forwarding import reset_forwarding_config
    from src.core.usage import reset_tier_policy_table, reset_usage_gate

    def _reset():
        reset_tier_policy_table()
        reset_usage_gate()
        reset_forwarding_config()
        reset_billing_config()

    _reset()
    yield
    _reset()


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture
def policy_table() -> TierPolicyTable:
    """Tier policy table built from the default quotas and allow-lists."""
    return TierPolicyTable({
        tier: TierPolicy(
            tier=tier,
            daily_quota=DEFAULT_TIER_QUOTAS[tier.value],
            allowed_models=frozenset(DEFAULT_TIER_MODELS[tier.value]),
            allowed_workflows=frozenset(DEFAULT_TIER_WORKFLOWS[tier.value]),
        )
        for tier in Tier
    })


@pytest.fixture
def forwarding_config() -> ForwardingConfig:
    """Forwarding config with fixed test endpoints and credentials."""
    return ForwardingConfig(
        openrouter_api_url="https://openrouter.test/api/v1/chat/completions",
        openrouter_api_key="or-test-key",
        public_base_url="https://app.test",
        app_title="Owaiken Chat",
        n8n_base_url="http://n8n.test:5678",
        n8n_api_key="n8n-test-key",
        timeout_seconds=5.0,
    )


def make_account(
    tier: Tier = Tier.STANDARD,
    message_count: int = 0,
    workflow_count: int = 0,
    user_id: str = TEST_USER_ID,
    override: Optional[CustomEndpointOverride] = None,
    subscription_status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
) -> Account:
    """Build an Account snapshot for tests."""
    return Account(
        user_id=user_id,
        tier=tier,
        message_count=message_count,
        workflow_count=workflow_count,
        subscription_status=subscription_status,
        override=override or CustomEndpointOverride(),
        stripe_customer_id="cus_test",
        stripe_subscription_id="sub_test",
    )


@pytest.fixture
def account_factory():
    """Factory for Account snapshots."""
    return make_account


class InMemoryAccounts:
    """Account store double with the repository's increment and event semantics."""

    def __init__(self):
        self.accounts: Dict[str, Account] = {}
        self.events: List[Dict[str, Any]] = []

    def add(self, account: Account) -> Account:
        self.accounts[account.user_id] = account
        return account

    async def get(self, user_id: str) -> Optional[Account]:
        return self.accounts.get(user_id)

    async def increment_usage(self, user_id: str, increment_workflow: bool = False) -> Optional[UsageCounters]:
        account = self.accounts.get(user_id)
        if account is None:
            return None
        account = replace(
            account,
            message_count=account.message_count + 1,
            workflow_count=account.workflow_count + (1 if increment_workflow else 0),
        )
        self.accounts[user_id] = account
        return UsageCounters(account.message_count, account.workflow_count)

    async def append_usage_event(
        self, user_id: str, action_type: ActionType, target_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        event = {
            "user_id": user_id,
            "action_type": action_type.value,
            "target_id": target_id,
            "payload": payload,
        }
        self.events.append(event)
        return event


@pytest.fixture
def accounts() -> InMemoryAccounts:
    """In-memory account store."""
    return InMemoryAccounts()


@pytest.fixture
def gate(policy_table, forwarding_config, accounts) -> UsageGate:
    """Usage gate wired to the in-memory account store."""
    return UsageGate(
        policy_table=policy_table,
        forwarding_config=forwarding_config,
        increment_usage=accounts.increment_usage,
        append_usage_event=accounts.append_usage_event,
    )


# =============================================================================
# Downstream HTTP Fixtures
# =============================================================================

class RecordingTransport(httpx.MockTransport):
    """httpx MockTransport that records requests and replies from a queue or handler."""

    def __init__(self, response: Optional[httpx.Response] = None, error: Optional[Exception] = None):
        self.requests: List[httpx.Request] = []
        self.response = response or httpx.Response(200, json={"ok": True})
        self.error = error
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def transport() -> RecordingTransport:
    """Transport answering 200 {"ok": true} by default."""
    return RecordingTransport()


@pytest.fixture
def forwarder(forwarding_config, transport) -> DownstreamForwarder:
    """Forwarder whose HTTP client goes through the recording transport."""
    return DownstreamForwarder(
        config=forwarding_config,
        client=httpx.AsyncClient(transport=transport, timeout=forwarding_config.timeout_seconds),
    )


@pytest.fixture
def async_mock():
    """Create a generic async mock."""
    return AsyncMock()


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def app(accounts, gate, forwarder, policy_table, monkeypatch):
    """FastAPI app wired to the in-memory store, test gate and recording forwarder.

    The lifespan is not run.
    """
    from src.api.app import create_app
    from src.api.dependencies import get_downstream_forwarder, get_gate, get_policy_table

    monkeypatch.setattr("src.api.dependencies.get_account_by_user_id", accounts.get)

    app = create_app()
    app.dependency_overrides[get_gate] = lambda: gate
    app.dependency_overrides[get_downstream_forwarder] = lambda: forwarder
    app.dependency_overrides[get_policy_table] = lambda: policy_table
    return app


@pytest.fixture
def client(app):
    """Create test client for FastAPI app."""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def headers():
    """Default headers with the resolved user id."""
    return {"X-User-ID": TEST_USER_ID}


# =============================================================================
# Integration Test Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires a real database)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION_TESTS is set."""
    if not os.getenv("RUN_INTEGRATION_TESTS"):
        skip_integration = pytest.mark.skip(
            reason="Set RUN_INTEGRATION_TESTS=1 to run integration tests"
        )
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)
