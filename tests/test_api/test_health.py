"""
Tests for Health Endpoints
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


@pytest.mark.api
def test_root(client: TestClient):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert "MedicineTT" in response.json()["message"]


@pytest.mark.api
def test_health_reports_database_and_scheduler(client: TestClient, sample_medicines):
    client.post("/api/v1/medicines/1/complete")

    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] is True
    assert data["counts"] == {"medicines": 4, "daily_logs": 1}
    # Scheduler is disabled in tests
    assert data["scheduler"] == []
