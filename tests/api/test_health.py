import pytest
from fastapi.testclient import TestClient


def test_health_check_liveness(client: TestClient):
    """Test basic liveness health check"""
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "focus-timer-api"


def test_health_check_readiness_success(client: TestClient):
    """Test readiness check with a reachable database"""
    response = client.get("/api/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert "checks" in data
    assert data["checks"]["database"] == "healthy"


def test_health_endpoints_no_user_required(client: TestClient):
    """Test that health endpoints don't need a caller identity"""
    response_liveness = client.get("/api/health")
    response_readiness = client.get("/api/health/ready")

    assert response_liveness.status_code == 200
    assert response_readiness.status_code == 200


def test_root(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to Focus Timer API"}
