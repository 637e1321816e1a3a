"""Unit tests for the public health, root and tier listing endpoints."""

from unittest.mock import patch, AsyncMock

from src.constants import SERVICE_NAME, SERVICE_VERSION


class TestTiersEndpoint:
    """Tests for GET /api/tiers."""

    def test_lists_tiers_without_identity(self, client):
        response = client.get("/api/tiers")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert [tier["id"] for tier in data["tiers"]] == ["standard", "pro", "enterprise"]

    def test_tier_details(self, client):
        tiers = {tier["id"]: tier for tier in client.get("/api/tiers").json()["tiers"]}

        assert tiers["standard"]["daily_quota"] == 100
        assert tiers["standard"]["allowed_workflows"] == ["basic-chat", "simple-rag"]
        assert tiers["pro"]["highlighted"] is True
        assert tiers["enterprise"]["custom_endpoint"] is True
        assert tiers["pro"]["custom_endpoint"] is False


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_healthy(self, client):
        with patch("src.db.connection.db") as mock_db:
            mock_db.config.enabled = True
            mock_db.test_connection = AsyncMock(return_value=True)
            response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == SERVICE_VERSION
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["tier_policy"]["tiers"] == ["standard", "pro", "enterprise"]

    def test_database_down(self, client):
        with patch("src.db.connection.db") as mock_db:
            mock_db.config.enabled = True
            mock_db.test_connection = AsyncMock(return_value=False)
            response = client.get("/health")

        assert response.json()["status"] == "unhealthy"

    def test_bad_tier_configuration(self, client, monkeypatch):
        monkeypatch.setenv("PRO_RATE_LIMIT", "many")

        with patch("src.db.connection.db") as mock_db:
            mock_db.config.enabled = False
            response = client.get("/health")

        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"]["status"] == "disabled"
        assert data["components"]["tier_policy"]["status"] == "unhealthy"


class TestRootEndpoint:
    """Tests for GET /."""

    def test_service_info(self, client):
        data = client.get("/").json()

        assert data["service"] == SERVICE_NAME
        assert data["health"] == "/health"

    def test_request_id_header(self, client):
        response = client.get("/")

        assert len(response.headers["X-Request-ID"]) == 8
        assert "X-Response-Time-MS" in response.headers

    def test_incoming_request_id_is_kept(self, client):
        response = client.get("/", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"

    def test_unknown_route_envelope(self, client):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False
