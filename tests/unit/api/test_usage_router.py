"""Unit tests for the usage summary router."""

from unittest.mock import patch, AsyncMock

from src.core.usage import Tier

TEST_USER_ID = "user_2abcDEF"


class TestUsageSummary:
    """Tests for GET /api/usage/summary."""

    def test_summary(self, client, headers, accounts, account_factory):
        accounts.add(account_factory(tier=Tier.PRO, message_count=250, workflow_count=12))
        events = [{
            "id": "evt-1",
            "user_id": TEST_USER_ID,
            "action_type": "chat",
            "target_id": "anthropic/claude-2",
            "payload": {"model": "anthropic/claude-2"},
            "created_at": "2026-01-05T10:00:00+00:00",
        }]

        with patch(
            "src.api.routers.usage.list_recent_usage_events", new_callable=AsyncMock
        ) as mock_list:
            mock_list.return_value = events
            response = client.get("/api/usage/summary", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "pro"
        assert data["subscription_status"] == "active"
        assert data["message_count"] == 250
        assert data["workflow_count"] == 12
        assert data["quota"] == 1000
        assert data["remaining"] == 750
        assert data["percentage_used"] == 25.0
        assert data["recent_events"][0]["target_id"] == "anthropic/claude-2"
        mock_list.assert_awaited_once_with(TEST_USER_ID, limit=5)

    def test_remaining_never_negative(self, client, headers, accounts, account_factory):
        accounts.add(account_factory(tier=Tier.STANDARD, message_count=140))

        with patch(
            "src.api.routers.usage.list_recent_usage_events", new_callable=AsyncMock, return_value=[]
        ):
            data = client.get("/api/usage/summary", headers=headers).json()

        assert data["remaining"] == 0
        assert data["percentage_used"] == 140.0

    def test_unknown_account(self, client):
        response = client.get("/api/usage/summary", headers={"X-User-ID": "user_missing"})

        assert response.status_code == 404
