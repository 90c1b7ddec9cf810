"""
Tests for Voice API
===================
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


class TestVoiceCommand:
    """Tests for the text command endpoint"""

    @pytest.mark.api
    def test_medicine_completed(self, client: TestClient, sample_medicines):
        response = client.post("/api/v1/voice/command", json={"text": "Medicine 2 completed"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["intent"] == "mark_taken"
        assert data["result"]["status"] == "TAKEN"

    @pytest.mark.api
    def test_repeated_command_conflicts(self, client: TestClient, sample_medicines):
        client.post("/api/v1/voice/command", json={"text": "Medicine 2 completed"})

        response = client.post("/api/v1/voice/command", json={"text": "medicine 2 taken"})

        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.api
    def test_add_medicine(self, client: TestClient):
        response = client.post(
            "/api/v1/voice/command",
            json={"text": "Add medicine Aspirin at 8:30 slot morning dosage 75mg"}
        )

        assert response.status_code == status.HTTP_200_OK
        result = response.json()["result"]
        assert result["medicine_no"] == 1
        assert result["scheduled_time"] == "08:30"
        assert result["time_slot"] == "Morning"
        assert result["dosage"] == "75mg"

    @pytest.mark.api
    def test_add_medicine_bad_slot(self, client: TestClient):
        response = client.post(
            "/api/v1/voice/command",
            json={"text": "Add medicine Aspirin at 8:30 slot lunchtime"}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_unrecognized(self, client: TestClient):
        response = client.post("/api/v1/voice/command", json={"text": "what's the weather"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "Command not recognized" in response.json()["message"]
