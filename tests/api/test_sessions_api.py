import pytest
from fastapi import status
from datetime import datetime, timedelta, timezone


class TestRecordSession:
    """Tests for POST /api/sessions"""

    def test_record_completed_session(self, client, test_user):
        response = client.post("/api/sessions", headers=test_user["headers"], json={
            "mode": "work",
            "planned_duration_seconds": 1500,
            "actual_duration_seconds": 1500,
            "task_id": "task-9"
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user_id"] == test_user["user_id"]
        assert data["completed"] is True
        assert data["task_id"] == "task-9"
        assert data["completed_at"] is not None
        started = datetime.fromisoformat(data["started_at"])
        completed = datetime.fromisoformat(data["completed_at"])
        assert completed - started == timedelta(seconds=1500)

    def test_record_with_explicit_start(self, client, test_user):
        started_at = datetime(2024, 3, 10, 4, 0, tzinfo=timezone.utc)
        response = client.post("/api/sessions", headers=test_user["headers"], json={
            "mode": "short_break",
            "planned_duration_seconds": 300,
            "actual_duration_seconds": 120,
            "started_at": started_at.isoformat(),
            "completed": False
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["mode"] == "short_break"
        assert data["completed"] is False
        assert datetime.fromisoformat(data["started_at"]) == datetime(2024, 3, 10, 4, 0)

    @pytest.mark.parametrize("payload", [
        {"mode": "work", "planned_duration_seconds": 0, "actual_duration_seconds": 10},
        {"mode": "work", "planned_duration_seconds": 1500, "actual_duration_seconds": -1},
        {"mode": "nap", "planned_duration_seconds": 1500, "actual_duration_seconds": 10},
    ])
    def test_invalid_session_422(self, client, test_user, payload):
        response = client.post("/api/sessions", headers=test_user["headers"], json=payload)

        assert response.status_code == 422


class TestListSessions:
    """Tests for GET /api/sessions"""

    def test_lists_only_own_sessions_newest_first(self, client, test_user, test_user2):
        for offset in (3, 2, 1):
            client.post("/api/sessions", headers=test_user["headers"], json={
                "planned_duration_seconds": 1500,
                "actual_duration_seconds": 1500,
                "started_at": (datetime(2024, 3, 10, 4, 0) - timedelta(days=offset)).isoformat()
            })
        client.post("/api/sessions", headers=test_user2["headers"], json={
            "planned_duration_seconds": 1500,
            "actual_duration_seconds": 1500
        })

        response = client.get("/api/sessions", headers=test_user["headers"])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data) == 3
        assert [s["started_at"][:10] for s in data] == ["2024-03-09", "2024-03-08", "2024-03-07"]
        assert all(s["user_id"] == test_user["user_id"] for s in data)

    def test_limit(self, client, test_user):
        for _ in range(3):
            client.post("/api/sessions", headers=test_user["headers"], json={
                "planned_duration_seconds": 1500,
                "actual_duration_seconds": 1500
            })

        response = client.get("/api/sessions", headers=test_user["headers"], params={"limit": 2})

        assert len(response.json()) == 2

    def test_invalid_limit_422(self, client, test_user):
        response = client.get("/api/sessions", headers=test_user["headers"], params={"limit": 0})

        assert response.status_code == 422
