"""
Tests for per-exercise load progression.
"""

from datetime import datetime
from uuid import uuid4

import pytest

from fitai.progression import (
    FALLBACK_STARTING_WEIGHT,
    apply_session,
    default_weight,
    find_history,
    suggest_weight,
)
from fitai.schemas import (
    Equipment,
    ExerciseRecord,
    ExerciseWeightHistory,
    SessionDifficulty,
    SessionLog,
    SetRecord,
)


def _log(difficulty, records):
    return SessionLog(
        date=datetime(2024, 3, 4, 18, 0),
        workout_id=uuid4(),
        workout_title_key="workout_upper_a",
        exercise_records=records,
        difficulty=difficulty,
    )


def _record(name_key, *weights):
    return ExerciseRecord(
        exercise_id=uuid4(),
        exercise_name_key=name_key,
        sets_completed=[
            SetRecord(set_number=i + 1, reps=10, weight_kg=w) for i, w in enumerate(weights)
        ],
    )


@pytest.mark.parametrize(
    "feedback,expected",
    [
        (SessionDifficulty.TOO_EASY, 55.0),
        (SessionDifficulty.JUST_RIGHT, 51.25),
        (SessionDifficulty.TOO_HARD, 47.5),
    ],
)
def test_suggest_weight(feedback, expected):
    """Test suggested weight for each feedback level."""
    assert suggest_weight(50.0, feedback) == pytest.approx(expected)


def test_suggest_weight_without_feedback():
    assert suggest_weight(50.0, None) is None


def test_apply_session_creates_history_from_heaviest_set():
    """Test that a new exercise gets history from its heaviest set."""
    history = []
    log = _log(SessionDifficulty.TOO_EASY, [_record("ex_goblet_squats", 10.0, 12.0, 11.0)])

    updated = apply_session(history, log)

    assert updated == ["ex_goblet_squats"]
    entry = find_history(history, "ex_goblet_squats")
    assert entry.last_weight_kg == 12.0
    assert entry.suggested_weight_kg == pytest.approx(13.2)
    assert entry.last_updated == log.date


def test_apply_session_updates_existing_entry_in_place():
    """Test that history is keyed by name key, one entry per exercise."""
    history = [
        ExerciseWeightHistory(
            exercise_name_key="ex_bicep_curls",
            last_weight_kg=8.0,
            suggested_weight_kg=8.2,
            last_updated=datetime(2024, 2, 1),
        )
    ]

    apply_session(history, _log(SessionDifficulty.TOO_HARD, [_record("ex_bicep_curls", 10.0)]))

    assert len(history) == 1
    assert history[0].last_weight_kg == 10.0
    assert history[0].suggested_weight_kg == pytest.approx(9.5)


def test_apply_session_without_feedback_leaves_history():
    history = []

    updated = apply_session(history, _log(None, [_record("ex_goblet_squats", 12.0)]))

    assert updated == []
    assert history == []


def test_apply_session_skips_bodyweight_records():
    """Test that records with no weight do not create history."""
    history = []

    updated = apply_session(
        history,
        _log(SessionDifficulty.JUST_RIGHT, [_record("ex_push_ups", 0.0, 0.0), _record("ex_lunges")]),
    )

    assert updated == []
    assert history == []


def test_default_weight_prefers_history():
    history = [
        ExerciseWeightHistory(
            exercise_name_key="ex_goblet_squats", last_weight_kg=12.0, suggested_weight_kg=13.2
        )
    ]

    assert default_weight("ex_goblet_squats", Equipment.DUMBBELLS, history) == 13.2


def test_default_weight_fallbacks():
    """Test starting weights without history."""
    assert default_weight("ex_goblet_squats", Equipment.DUMBBELLS, []) == 12.0
    assert default_weight("ex_lateral_raises", Equipment.DUMBBELLS, []) == 4.0
    assert default_weight("ex_unknown", Equipment.DUMBBELLS, []) == FALLBACK_STARTING_WEIGHT
    assert default_weight("ex_goblet_squats", Equipment.NONE, []) == 0.0
