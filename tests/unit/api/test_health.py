"""
Unit Tests for Health Endpoints

Tests the /api/health and /api/ready endpoints.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from opschat.api.main import app, app_state


class TestHealthEndpoints:
    """Test suite for health check endpoints."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        return TestClient(app)

    @pytest.fixture(autouse=True)
    def reset_state(self):
        yield
        app_state["readiness"] = None
        app_state["orchestrator"] = None

    def test_health_returns_200(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"
        assert "timestamp" in body

    def test_ready_when_database_connected(self, client):
        app_state["readiness"] = MagicMock(state="connected")
        app_state["orchestrator"] = MagicMock()

        response = client.get("/api/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"database": True, "assistant": True}

    @pytest.mark.parametrize("state", ["disconnected", "failed"])
    def test_not_ready_until_database_connected(self, client, state):
        app_state["readiness"] = MagicMock(state=state)
        app_state["orchestrator"] = MagicMock()

        response = client.get("/api/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["checks"]["database"] is False

    def test_not_ready_without_database(self, client):
        response = client.get("/api/ready")

        assert response.status_code == 503
        assert response.json()["checks"] == {"database": False, "assistant": False}

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "OpsChat API"
