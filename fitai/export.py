"""
CSV export of weight entries and session logs.
"""

import csv
import io
from typing import Iterable

from fitai.schemas import SessionLog, WeightEntry

WEIGHT_HEADER = ["Date", "Weight (kg)", "Notes"]
SESSION_HEADER = ["Date", "Workout", "Duration (min)", "Rating", "Notes"]


def weight_entries_to_csv(entries: Iterable[WeightEntry]) -> str:
    """
    Render weight entries as CSV, oldest first.

    Args:
        entries: Weight entries in any order

    Returns:
        CSV text with a header row
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(WEIGHT_HEADER)
    for entry in sorted(entries, key=lambda e: e.date):
        writer.writerow([entry.date.strftime("%Y-%m-%d"), entry.weight_kg, entry.notes])
    return buffer.getvalue()


def session_logs_to_csv(logs: Iterable[SessionLog]) -> str:
    """
    Render session logs as CSV, newest first.

    Missing duration and rating are written as 0.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(SESSION_HEADER)
    for log in sorted(logs, key=lambda log: log.date, reverse=True):
        writer.writerow([
            log.date.strftime("%Y-%m-%d %H:%M"),
            log.workout_title_key,
            log.duration_minutes or 0,
            log.rating or 0,
            log.notes,
        ])
    return buffer.getvalue()
