"""Tests for health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from main import app


class TestHealthCheck:
    """Tests for basic health check endpoint."""

    def test_health_check_returns_success(self) -> None:
        """Test basic health check returns healthy status."""
        client = TestClient(app)
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "healthy"
        assert "LINE Content Studio" in data["data"]["message"]
        assert data["message"] == "Health check successful"

    def test_correlation_id_is_echoed(self) -> None:
        """A caller-supplied correlation ID comes back on the response."""
        client = TestClient(app)
        response = client.get(
            "/api/v1/health", headers={"X-Correlation-ID": "req-123"}
        )
        assert response.headers["X-Correlation-ID"] == "req-123"
