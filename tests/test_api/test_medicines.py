"""
Tests for Medicines API
=======================

Tests registry CRUD, today's status view, and taken endpoints.
"""

import pytest
from datetime import date, timedelta
from fastapi import status
from fastapi.testclient import TestClient

from models import DailyLog, DoseStatus


# ==================== FIXTURES ====================

@pytest.fixture
def medicine_create_data():
    """Sample data for creating a medicine"""
    return {
        "name": "Metformin",
        "scheduled_time": "8:00",
        "time_slot": "Morning",
        "dosage": "500mg"
    }


# ==================== CREATE TESTS ====================

class TestCreateMedicine:
    """Tests for medicine creation endpoint"""

    @pytest.mark.api
    def test_create_medicine_success(self, client: TestClient, medicine_create_data):
        response = client.post("/api/v1/medicines/", json=medicine_create_data)

        assert response.status_code == status.HTTP_201_CREATED
        medicine = response.json()["medicine"]
        assert medicine["medicine_no"] == 1
        assert medicine["scheduled_time"] == "08:00"
        assert medicine["frequency"] == "Daily"

    @pytest.mark.api
    def test_create_medicine_invalid_time(self, client: TestClient, medicine_create_data):
        medicine_create_data["scheduled_time"] = "25:00"

        response = client.post("/api/v1/medicines/", json=medicine_create_data)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] is True

    @pytest.mark.api
    def test_create_medicine_missing_name(self, client: TestClient):
        response = client.post(
            "/api/v1/medicines/",
            json={"scheduled_time": "08:00", "time_slot": "Morning"}
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_create_medicine_invalid_slot(self, client: TestClient, medicine_create_data):
        medicine_create_data["time_slot"] = "Afternoon"
        response = client.post("/api/v1/medicines/", json=medicine_create_data)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# ==================== READ / UPDATE / DELETE TESTS ====================

class TestMedicineRegistry:
    """Tests for reading, updating and deleting medicines"""

    @pytest.mark.api
    def test_list_all_pending(self, client: TestClient, sample_medicines):
        response = client.get("/api/v1/medicines/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [m["medicine_no"] for m in data] == [1, 2, 3, 4]
        assert all(m["status"] == "PENDING" for m in data)

    @pytest.mark.api
    def test_get_medicine(self, client: TestClient, sample_medicines):
        response = client.get("/api/v1/medicines/2")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Amoxicillin"

    @pytest.mark.api
    def test_get_missing_medicine(self, client: TestClient):
        response = client.get("/api/v1/medicines/42")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "42" in response.json()["message"]

    @pytest.mark.api
    def test_medicine_no_must_be_positive(self, client: TestClient):
        response = client.get("/api/v1/medicines/0")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.api
    def test_update_medicine(self, client: TestClient, sample_medicines):
        response = client.patch("/api/v1/medicines/3", json={"scheduled_time": "10:15"})

        assert response.status_code == status.HTTP_200_OK
        medicine = response.json()["medicine"]
        assert medicine["scheduled_time"] == "10:15"
        assert medicine["name"] == "Vitamin D"

    @pytest.mark.api
    def test_delete_medicine(self, client: TestClient, db_session, sample_medicines, add_log):
        add_log(sample_medicines[0], DoseStatus.MISSED, log_date=date.today() - timedelta(days=1))

        response = client.delete("/api/v1/medicines/1")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["logs_removed"] == 1
        assert client.get("/api/v1/medicines/1").status_code == status.HTTP_404_NOT_FOUND
        assert db_session.query(DailyLog).count() == 0

    @pytest.mark.api
    def test_seed(self, client: TestClient):
        response = client.post("/api/v1/medicines/seed")

        assert response.status_code == status.HTTP_200_OK
        names = [m["name"] for m in response.json()["medicines"]]
        assert names == ["Paracetamol", "Vitamin D", "Amoxicillin", "Ibuprofen"]


# ==================== TAKEN TESTS ====================

class TestTakenEndpoints:
    """Tests for marking doses taken"""

    @pytest.mark.api
    def test_complete_marks_taken(self, client: TestClient, sample_medicines):
        response = client.post("/api/v1/medicines/4/complete")

        assert response.status_code == status.HTTP_200_OK
        log = response.json()["log"]
        assert log["status"] == "TAKEN"
        assert log["date"] == date.today().isoformat()
        assert log["taken_time"] is not None

        listing = {m["medicine_no"]: m for m in client.get("/api/v1/medicines/").json()}
        assert listing[4]["status"] == "TAKEN"

    @pytest.mark.api
    def test_complete_twice_conflicts(self, client: TestClient, sample_medicines):
        first = client.post("/api/v1/medicines/4/complete").json()["log"]

        response = client.post("/api/v1/medicines/4/complete")

        assert response.status_code == status.HTTP_409_CONFLICT
        listing = {m["medicine_no"]: m for m in client.get("/api/v1/medicines/").json()}
        assert listing[4]["taken_time"] == first["taken_time"]

    @pytest.mark.api
    def test_complete_unknown_medicine(self, client: TestClient, sample_medicines):
        response = client.post("/api/v1/medicines/99/complete")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_set_taken_time_overwrites(self, client: TestClient, sample_medicines):
        client.post("/api/v1/medicines/2/complete")
        corrected = f"{date.today().isoformat()}T14:05:00"

        response = client.post("/api/v1/medicines/2/taken", json={"taken_time": corrected})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["log"]["taken_time"] == corrected

    @pytest.mark.api
    def test_set_taken_time_without_body(self, client: TestClient, sample_medicines):
        response = client.post("/api/v1/medicines/1/taken")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["log"]["status"] == "TAKEN"

    @pytest.mark.api
    def test_set_taken_time_for_earlier_day(self, client: TestClient, sample_medicines):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        response = client.post(
            "/api/v1/medicines/1/taken",
            json={"taken_time": f"{yesterday}T20:10:00", "date": yesterday}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["log"]["date"] == yesterday
