"""
Tests for the FastAPI surface.

The store dependency is overridden with a store backed by a temporary file.
"""

import json
from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from fitai.api.dependencies import get_store
from fitai.api.main import app
from fitai.errors import StoreIOError
from fitai.schemas import Difficulty, UserProfile, WeekProgram, Workout
from fitai.store import AppDataStore

MONDAY = datetime(2024, 3, 4, 18, 0)


@pytest.fixture
def store(tmp_path):
    store = AppDataStore.from_path(tmp_path / "app_data.json")
    store.load()
    store.set_profile(UserProfile(name="Alex", weight_kg=80.0, height_cm=180.0, age=30))
    store.add_week_program(
        WeekProgram(
            week_index=1,
            workouts=[
                Workout(
                    title_key=f"workout_{day}",
                    week_index=1,
                    day_index=day,
                    duration_minutes=45,
                    difficulty=Difficulty.BEGINNER,
                    scheduled_date=MONDAY + timedelta(days=day),
                )
                for day in (0, 2)
            ],
        )
    )
    store.save()
    return store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _session_payload(store, difficulty="too_easy"):
    workout = store.get_week_program(1).workouts[0]
    return {
        "date": "2024-03-04T19:00:00",
        "workoutId": str(workout.id),
        "workoutTitleKey": workout.title_key,
        "durationMinutes": 45,
        "rating": 4,
        "difficulty": difficulty,
        "exerciseRecords": [
            {
                "exerciseId": str(uuid4()),
                "exerciseNameKey": "ex_goblet_squats",
                "setsCompleted": [{"setNumber": 1, "reps": 10, "weightKg": 50.0}],
            }
        ],
    }


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_get_data_returns_encoded_document(client):
    response = client.get("/api/data")

    assert response.status_code == 200
    document = response.json()
    assert document["schemaVersion"] == 1
    assert document["profile"]["name"] == "Alex"
    assert len(document["weekPrograms"][0]["workouts"]) == 2


def test_decode_errors_empty_for_clean_document(client):
    response = client.get("/api/data/errors")

    assert response.status_code == 200
    assert response.json() == []


def test_log_session_persists_and_updates_progression(client, store, tmp_path):
    """Test the full session flow: log, mark completed, progression, save."""
    response = client.post("/api/sessions", json=_session_payload(store))

    assert response.status_code == 201
    body = response.json()
    assert body["updatedExercises"] == ["ex_goblet_squats"]

    progression = client.get("/api/progression/ex_goblet_squats").json()
    assert progression["lastWeightKg"] == 50.0
    assert progression["suggestedWeightKg"] == 55.0

    saved = json.loads((tmp_path / "app_data.json").read_text(encoding="utf-8"))
    assert len(saved["sessionLogs"]) == 1
    assert saved["weekPrograms"][0]["workouts"][0]["isCompleted"] is True


def test_log_session_for_unknown_workout_is_rejected(client, store):
    payload = _session_payload(store)
    payload["workoutId"] = str(uuid4())

    response = client.post("/api/sessions", json=payload)

    assert response.status_code == 400
    assert "unknown workout" in response.json()["message"]
    assert store.session_logs() == []


def test_invalid_session_payload_is_422(client, store):
    payload = _session_payload(store)
    payload["rating"] = 9

    response = client.post("/api/sessions", json=payload)

    assert response.status_code == 422


def test_store_failure_is_503_and_rolled_back(client, store, monkeypatch):
    """Test that a failed save neither persists nor keeps the log in memory."""
    def failing_write(payload):
        raise StoreIOError("disk full")

    monkeypatch.setattr(store.medium, "write", failing_write)

    response = client.post("/api/sessions", json=_session_payload(store))

    assert response.status_code == 503
    assert store.session_logs() == []
    assert not store.get_week_program(1).workouts[0].is_completed


def test_summary(client, store):
    client.post("/api/sessions", json=_session_payload(store))

    response = client.get("/api/summary/1")

    assert response.status_code == 200
    summary = response.json()
    assert summary["sessionsCompleted"] == 1
    assert summary["sessionsPlanned"] == 2
    assert summary["totalTrainingMinutes"] == 45
    assert summary["averageRating"] == 4.0


def test_summary_can_be_cached(client, store):
    client.get("/api/summary/1", params={"save": True})

    assert store.cached_weekly_summary(1) is not None


def test_negative_week_is_rejected(client):
    response = client.get("/api/summary/-1")

    assert response.status_code == 400


def test_targets(client):
    response = client.get("/api/targets")

    assert response.status_code == 200
    targets = response.json()
    assert targets["bmr"] == 1780.0
    assert targets["target_calories"] == 3059


def test_targets_without_profile(client, store):
    store.reset()

    response = client.get("/api/targets")

    assert response.status_code == 404


def test_progression_without_history(client):
    response = client.get("/api/progression/ex_lateral_raises")

    body = response.json()
    assert body["lastWeightKg"] is None
    assert body["defaultWeightKg"] == 4.0


def test_record_weight_updates_profile(client, store):
    response = client.post("/api/weights", json={"weightKg": 79.2, "date": "2024-03-05T07:30:00"})

    assert response.status_code == 201
    assert response.json()["latestWeightKg"] == 79.2
    assert store.profile.weight_kg == 79.2


def test_sync(client, store):
    response = client.put("/api/sync", json={"lastSyncDate": "2024-03-05T12:00:00"})

    assert response.status_code == 200
    assert store.last_sync_date == datetime(2024, 3, 5, 12, 0)
