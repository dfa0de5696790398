from __future__ import annotations

from fastapi.testclient import TestClient


def test_health(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["message"] == "Healthy"


def test_database_health(client):
    response = client.get("/api/v1/health/db")
    assert response.status_code == 200
    assert response.json()["message"] == "Healthy"


def test_database_health_unreachable(make_app, tmp_path):
    missing = tmp_path / "missing" / "school.db"
    app = make_app(DEFAULT_CONNECTION=f"sqlite:///{missing}")
    with TestClient(app) as client:
        response = client.get("/api/v1/health/db")
    assert response.status_code == 503
    assert response.json()["message"] == "Unhealthy"
