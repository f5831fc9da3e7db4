"""
Tests for CSV export.
"""

from datetime import datetime
from uuid import uuid4

from fitai.export import session_logs_to_csv, weight_entries_to_csv
from fitai.schemas import SessionLog, WeightEntry


def test_weight_entries_csv_oldest_first():
    entries = [
        WeightEntry(date=datetime(2024, 3, 10, 7, 30), weight_kg=79.4, notes="after trip"),
        WeightEntry(date=datetime(2024, 3, 4, 7, 30), weight_kg=80.0),
    ]

    lines = weight_entries_to_csv(entries).splitlines()

    assert lines == [
        "Date,Weight (kg),Notes",
        "2024-03-04,80.0,",
        "2024-03-10,79.4,after trip",
    ]


def test_session_logs_csv_newest_first_with_zero_defaults():
    logs = [
        SessionLog(
            date=datetime(2024, 3, 4, 18, 50),
            workout_id=uuid4(),
            workout_title_key="workout_upper_a",
            duration_minutes=45,
            rating=4,
        ),
        SessionLog(
            date=datetime(2024, 3, 6, 19, 5),
            workout_id=uuid4(),
            workout_title_key="workout_lower_a",
            notes="felt strong, more next time",
        ),
    ]

    lines = session_logs_to_csv(logs).splitlines()

    assert lines[0] == "Date,Workout,Duration (min),Rating,Notes"
    assert lines[1] == '2024-03-06 19:05,workout_lower_a,0,0,"felt strong, more next time"'
    assert lines[2] == "2024-03-04 18:50,workout_upper_a,45,4,"


def test_empty_export_has_header_only():
    assert weight_entries_to_csv([]) == "Date,Weight (kg),Notes\n"
