"""Unit tests for the account repository."""

import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from sqlalchemy.exc import OperationalError

from src.core.usage import CustomEndpointOverride, SubscriptionStatus, Tier, TierNotFound, UsageCounters

TEST_USER_ID = "user_2abcDEF"


def make_row(**overrides):
    """Mock users row with sensible defaults."""
    row = MagicMock()
    row.clerk_id = TEST_USER_ID
    row.subscription_tier = "pro"
    row.subscription_status = "active"
    row.message_count = 12
    row.workflow_count = 3
    row.use_custom_n8n = False
    row.custom_n8n_endpoint = None
    row.custom_n8n_api_key = None
    row.stripe_customer_id = "cus_123"
    row.stripe_subscription_id = "sub_123"
    for key, value in overrides.items():
        setattr(row, key, value)
    return row


@pytest.fixture
def mock_db_session():
    """Create mock database session."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_db(mock_db_session):
    """Patch the repository's database manager."""
    with patch("src.db.repositories.account_repository.db") as mock_db:
        mock_db.session.return_value.__aenter__.return_value = mock_db_session
        yield mock_db


class TestGetAccountByUserId:
    """Tests for get_account_by_user_id."""

    @pytest.mark.asyncio
    async def test_found(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.scalar_one_or_none.return_value = make_row()
        mock_db_session.execute.return_value = result

        account = await account_repository.get_account_by_user_id(TEST_USER_ID)

        assert account.user_id == TEST_USER_ID
        assert account.tier is Tier.PRO
        assert account.message_count == 12
        assert account.workflow_count == 3
        assert account.subscription_status is SubscriptionStatus.ACTIVE
        assert account.override == CustomEndpointOverride()

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        assert await account_repository.get_account_by_user_id("user_missing") is None

    @pytest.mark.asyncio
    async def test_null_tier_reads_as_standard(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.scalar_one_or_none.return_value = make_row(
            subscription_tier=None, subscription_status=None, message_count=None
        )
        mock_db_session.execute.return_value = result

        account = await account_repository.get_account_by_user_id(TEST_USER_ID)

        assert account.tier is Tier.STANDARD
        assert account.subscription_status is SubscriptionStatus.INACTIVE
        assert account.message_count == 0

    @pytest.mark.asyncio
    async def test_unknown_tier_raises(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.scalar_one_or_none.return_value = make_row(subscription_tier="platinum")
        mock_db_session.execute.return_value = result

        with pytest.raises(TierNotFound):
            await account_repository.get_account_by_user_id(TEST_USER_ID)

    @pytest.mark.asyncio
    async def test_override_fields(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.scalar_one_or_none.return_value = make_row(
            subscription_tier="enterprise",
            use_custom_n8n=True,
            custom_n8n_endpoint="https://x.example",
            custom_n8n_api_key="k-123",
        )
        mock_db_session.execute.return_value = result

        account = await account_repository.get_account_by_user_id(TEST_USER_ID)

        assert account.uses_custom_endpoint()
        assert account.override.api_key == "k-123"


class TestIncrementUsage:
    """Tests for increment_usage."""

    @pytest.mark.asyncio
    async def test_returns_new_counters(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.first.return_value = (13, 3)
        mock_db_session.execute.return_value = result

        counters = await account_repository.increment_usage(TEST_USER_ID)

        assert counters == UsageCounters(message_count=13, workflow_count=3)
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_workflow_increments_both_columns(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.first.return_value = (13, 4)
        mock_db_session.execute.return_value = result

        await account_repository.increment_usage(TEST_USER_ID, increment_workflow=True)

        stmt = mock_db_session.execute.await_args.args[0]
        compiled = str(stmt)
        assert "message_count" in compiled
        assert "workflow_count=" in compiled.replace(" ", "")

    @pytest.mark.asyncio
    async def test_chat_leaves_workflow_count(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.first.return_value = (13, 3)
        mock_db_session.execute.return_value = result

        await account_repository.increment_usage(TEST_USER_ID)

        stmt = mock_db_session.execute.await_args.args[0]
        set_clause = str(stmt).split("RETURNING")[0]
        assert "workflow_count" not in set_clause

    @pytest.mark.asyncio
    async def test_no_row(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        result = MagicMock()
        result.first.return_value = None
        mock_db_session.execute.return_value = result

        assert await account_repository.increment_usage("user_missing") is None

    @pytest.mark.asyncio
    async def test_not_retried(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.side_effect = OperationalError("UPDATE", {}, Exception("lost"))

        with pytest.raises(OperationalError):
            await account_repository.increment_usage(TEST_USER_ID)

        assert mock_db_session.execute.await_count == 1


class TestSubscriptionWrites:
    """Tests for billing-driven writes."""

    @pytest.mark.asyncio
    async def test_reset_usage(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        assert await account_repository.reset_usage_by_subscription_id("sub_123") == 1

        stmt = mock_db_session.execute.await_args.args[0]
        compiled = stmt.compile()
        assert str(compiled).startswith("UPDATE users SET")
        assert "WHERE users.stripe_subscription_id = :stripe_subscription_id_1" in str(compiled)
        assert compiled.params == {
            "message_count": 0,
            "workflow_count": 0,
            "stripe_subscription_id_1": "sub_123",
        }

    @pytest.mark.asyncio
    async def test_reset_usage_unknown_subscription(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.return_value = MagicMock(rowcount=0)

        assert await account_repository.reset_usage_by_subscription_id("sub_missing") == 0

    @pytest.mark.asyncio
    async def test_apply_checkout(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        updated = await account_repository.apply_checkout(
            user_id=TEST_USER_ID,
            tier=Tier.PRO,
            status=SubscriptionStatus.ACTIVE,
            stripe_customer_id="cus_123",
            stripe_subscription_id="sub_123",
        )

        assert updated == 1
        params = mock_db_session.execute.await_args.args[0].compile().params
        assert params["subscription_tier"] == "pro"
        assert params["subscription_status"] == "active"
        assert params["message_count"] == 0
        assert params["workflow_count"] == 0

    @pytest.mark.asyncio
    async def test_update_subscription_keeps_counters(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        await account_repository.update_subscription_by_subscription_id(
            "sub_123", tier=Tier.STANDARD, status=SubscriptionStatus.CANCELED
        )

        params = mock_db_session.execute.await_args.args[0].compile().params
        assert params["subscription_tier"] == "standard"
        assert params["subscription_status"] == "canceled"
        assert "message_count" not in params


class TestUpdateCustomEndpoint:
    """Tests for update_custom_endpoint."""

    @pytest.mark.asyncio
    async def test_empty_values_stored_as_null(self, mock_db, mock_db_session):
        from src.db.repositories import account_repository

        mock_db_session.execute.return_value = MagicMock(rowcount=1)

        await account_repository.update_custom_endpoint(
            TEST_USER_ID, CustomEndpointOverride(enabled=False, endpoint="", api_key="")
        )

        params = mock_db_session.execute.await_args.args[0].compile().params
        assert params["use_custom_n8n"] is False
        assert params["custom_n8n_endpoint"] is None
        assert params["custom_n8n_api_key"] is None


class TestDisabledDatabase:
    """Repository calls when DATABASE_ENABLED=false."""

    @pytest.fixture
    def disabled_db(self):
        with patch("src.db.repositories.account_repository.db") as mock_db:
            mock_db.session.return_value.__aenter__.return_value = None
            yield mock_db

    @pytest.mark.asyncio
    async def test_reads_return_none(self, disabled_db):
        from src.db.repositories import account_repository

        assert await account_repository.get_account_by_user_id(TEST_USER_ID) is None
        assert await account_repository.increment_usage(TEST_USER_ID) is None

    @pytest.mark.asyncio
    async def test_writes_update_nothing(self, disabled_db):
        from src.db.repositories import account_repository

        assert await account_repository.reset_usage_by_subscription_id("sub_123") == 0
        assert await account_repository.apply_checkout(
            user_id=TEST_USER_ID,
            tier=Tier.PRO,
            status=SubscriptionStatus.ACTIVE,
            stripe_customer_id="cus_123",
            stripe_subscription_id="sub_123",
        ) == 0
        assert await account_repository.update_subscription_by_subscription_id(
            "sub_123", tier=Tier.STANDARD, status=SubscriptionStatus.CANCELED
        ) == 0
        assert await account_repository.update_custom_endpoint(
            TEST_USER_ID, CustomEndpointOverride()
        ) == 0

    @pytest.mark.asyncio
    async def test_real_manager_with_datastore_off(self):
        from src.db.connection import DatabaseConfig, db
        from src.db.repositories import account_repository

        with patch.object(db, "config", DatabaseConfig(enabled=False)):
            assert await account_repository.get_account_by_user_id(TEST_USER_ID) is None
