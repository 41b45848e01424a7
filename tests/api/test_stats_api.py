import pytest
from fastapi import status
from datetime import datetime, timedelta, timezone

from app.utils.civil_time import civil_today


def record_work_session(client, headers, actual_duration_seconds=1500, completed=True):
    return client.post("/api/sessions", headers=headers, json={
        "mode": "work",
        "planned_duration_seconds": 1500,
        "actual_duration_seconds": actual_duration_seconds,
        "completed": completed
    })


class TestActivity:
    """Tests for GET /api/stats/activity"""

    def test_empty_window(self, client, test_user):
        response = client.get("/api/stats/activity", headers=test_user["headers"],
                              params={"start_date": "2024-03-01", "end_date": "2024-03-07"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["days"]) == 7
        assert data["total_sessions"] == 0
        assert data["current_streak"] == 0
        assert data["longest_streak"] == 0
        assert data["activity_tier"] == "low"
        assert all(day["intensity_level"] == 0 for day in data["days"])

    def test_end_before_start_400(self, client, test_user):
        response = client.get("/api/stats/activity", headers=test_user["headers"],
                              params={"start_date": "2024-03-07", "end_date": "2024-03-01"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_dates_required_422(self, client, test_user):
        response = client.get("/api/stats/activity", headers=test_user["headers"])

        assert response.status_code == 422

    def test_recorded_session_counts_today(self, client, test_user):
        record_work_session(client, test_user["headers"])
        today = civil_today()

        data = client.get("/api/stats/activity", headers=test_user["headers"], params={
            "start_date": (today - timedelta(days=6)).isoformat(),
            "end_date": today.isoformat()
        }).json()

        assert data["total_sessions"] == 1
        assert data["current_streak"] == 1
        assert data["total_focus_minutes"] == 25
        assert data["days"][-1]["intensity_level"] > 0


class TestDaily:
    """Tests for GET /api/stats/daily"""

    def test_defaults_to_today(self, client, test_user):
        response = client.get("/api/stats/daily", headers=test_user["headers"])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data) == 1
        assert data[0]["date"] == civil_today().isoformat()

    def test_session_and_stopwatch_add_up(self, client, test_user, test_user2):
        headers = test_user["headers"]
        record_work_session(client, headers)
        record_work_session(client, headers, actual_duration_seconds=600, completed=False)
        record_work_session(client, test_user2["headers"])
        started_at = datetime.now(timezone.utc) - timedelta(seconds=150)
        client.post("/api/stopwatch", headers=headers, json={
            "duration_seconds": 120,
            "started_at": started_at.isoformat(),
            "ended_at": (started_at + timedelta(seconds=120)).isoformat()
        })

        [today] = client.get("/api/stats/daily", headers=headers).json()

        assert today["pomodoro_session_count"] == 1
        assert today["stopwatch_block_count"] == 1
        assert today["session_count"] == 2
        assert today["total_focus_minutes"] == 25 + 2


class TestHeatmap:
    """Tests for GET /api/stats/heatmap"""

    def test_default_range_is_last_year(self, client, test_user):
        response = client.get("/api/stats/heatmap", headers=test_user["headers"])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        today = civil_today()
        assert data["activity"]["end_date"] == today.isoformat()
        assert data["activity"]["start_date"] == (today - timedelta(days=365)).isoformat()
        assert len(data["activity"]["days"]) == 366
        assert all(len(week) == 7 for week in data["grid"]["weeks"])
        assert len(data["grid"]["month_labels"]) >= 12

    def test_explicit_range(self, client, test_user):
        data = client.get("/api/stats/heatmap", headers=test_user["headers"],
                          params={"start_date": "2024-02-25", "end_date": "2024-03-16"}).json()

        assert len(data["grid"]["weeks"]) == 3
        assert [label["month"] for label in data["grid"]["month_labels"]] == ["Feb", "Mar"]

    def test_end_before_start_400(self, client, test_user):
        response = client.get("/api/stats/heatmap", headers=test_user["headers"],
                              params={"start_date": "2024-03-16", "end_date": "2024-02-25"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
