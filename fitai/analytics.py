"""
Weekly summary generation.

Derives a WeeklySummary for one program week from the aggregate:

- Training: sessions completed vs planned, minutes trained, average rating
- Progress: best exercise load improvements, consecutive-week streak
- Body & nutrition: weight change, average meal plan macros, average water

Generation is a pure function of (AppData, week number): it never mutates the
input and returns identical results for identical inputs, so it can be rerun
whenever the app wants fresh numbers.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fitai.schemas import (
    AppData,
    ExerciseImprovement,
    SessionLog,
    SetRecord,
    WeekProgram,
    WeeklySummary,
)

logger = logging.getLogger(__name__)

LoadProxy = Callable[[SetRecord], float]

DEFAULT_STREAK_THRESHOLD = 1.0
DEFAULT_TOP_EXERCISES = 3


def weight_times_reps(set_record: SetRecord) -> float:
    """Estimated load of one set: weight x reps."""
    return set_record.weight_kg * set_record.reps


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday-start week containing ``day`` as a half-open [start, end) range."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=7)


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


class WeeklySummaryGenerator:
    """
    Builds WeeklySummary records from session logs, weights, meals and water.

    Args:
        streak_threshold: Minimum completion rate for a week to extend the streak
        top_n: Number of best exercises to report
        load_proxy: Estimated load of a set (default weight x reps)
    """

    def __init__(
        self,
        streak_threshold: float = DEFAULT_STREAK_THRESHOLD,
        top_n: int = DEFAULT_TOP_EXERCISES,
        load_proxy: LoadProxy = weight_times_reps,
    ):
        self.streak_threshold = streak_threshold
        self.top_n = top_n
        self.load_proxy = load_proxy

    def generate(
        self,
        data: AppData,
        week_number: int,
        generated_at: Optional[datetime] = None,
    ) -> WeeklySummary:
        """
        Summarize one program week.

        Args:
            data: Aggregate to read from (not modified)
            week_number: Program week index to summarize
            generated_at: Timestamp to stamp on the summary (None keeps output
                independent of the wall clock)

        Returns:
            WeeklySummary for the week; missing inputs yield zero/None fields
        """
        program = self._find_program(data, week_number)
        logs = self.week_logs(data, program) if program else []
        completed, planned = self.completion(data, program)

        window = self.week_window(program, logs) if program else None

        start_weight = end_weight = weight_change = None
        average_calories = average_protein = average_carbs = average_fats = None
        average_water = None

        if window is not None:
            start, end = window

            weights = sorted(
                (e for e in data.weight_entries if start <= e.date.date() < end),
                key=lambda e: e.date,
            )
            if weights:
                start_weight = weights[0].weight_kg
                end_weight = weights[-1].weight_kg
            if len(weights) >= 2:
                weight_change = round(end_weight - start_weight, 2)

            plans = [p for p in data.meal_plans if start <= p.date.date() < end]
            average_calories = _mean([p.total_kcal for p in plans])
            average_protein = _mean([p.total_protein for p in plans])
            average_carbs = _mean([p.total_carbs for p in plans])
            average_fats = _mean([p.total_fats for p in plans])

            water = [w for w in data.water_intakes if start <= w.date.date() < end]
            average_water = _mean([w.glasses for w in water])

        ratings = [log.rating for log in logs if log.rating is not None]

        summary = WeeklySummary(
            week_number=week_number,
            sessions_completed=completed,
            sessions_planned=planned,
            total_training_minutes=sum(log.duration_minutes or 0 for log in logs),
            weight_change=weight_change,
            start_weight=start_weight,
            end_weight=end_weight,
            average_rating=_mean(ratings),
            best_exercises=self.best_exercises(data, week_number),
            average_calories=average_calories,
            average_protein=average_protein,
            average_carbs=average_carbs,
            average_fats=average_fats,
            average_water_glasses=average_water,
            current_streak=self.current_streak(data, week_number),
            generated_at=generated_at,
        )

        logger.debug(
            "Week %d summary: %d/%d sessions, streak %d",
            week_number,
            completed,
            planned,
            summary.current_streak,
        )
        return summary

    # ===== WEEK SELECTION =====

    @staticmethod
    def _find_program(data: AppData, week_number: int) -> Optional[WeekProgram]:
        for program in data.week_programs:
            if program.week_index == week_number:
                return program
        return None

    @staticmethod
    def week_logs(data: AppData, program: Optional[WeekProgram]) -> List[SessionLog]:
        """
        Session logs referencing a workout of the program, oldest first.

        Logs whose workout no longer exists in any program are skipped.
        """
        if program is None:
            return []
        workout_ids = program.workout_ids()
        logs = [log for log in data.session_logs if log.workout_id in workout_ids]
        return sorted(logs, key=lambda log: (log.date, str(log.id)))

    @staticmethod
    def completion(data: AppData, program: Optional[WeekProgram]) -> Tuple[int, int]:
        """
        Count (completed, planned) sessions of a program week.

        A workout counts as completed once, however many logs reference it.
        """
        if program is None:
            return 0, 0
        logged = {log.workout_id for log in data.session_logs}
        workout_ids = program.workout_ids()
        return len(workout_ids & logged), len(program.workouts)

    @staticmethod
    def week_window(
        program: WeekProgram, logs: Sequence[SessionLog]
    ) -> Optional[Tuple[date, date]]:
        """
        Calendar week covered by a program week.

        Anchored on the earliest scheduled workout, else the earliest log of
        the week, else the program's generation date.
        """
        scheduled = [w.scheduled_date for w in program.workouts if w.scheduled_date]
        if scheduled:
            anchor = min(scheduled)
        elif logs:
            anchor = min(log.date for log in logs)
        else:
            anchor = program.generated_at
        return week_bounds(anchor.date())

    # ===== PROGRESS =====

    def _session_loads(self, logs: Sequence[SessionLog]) -> Dict[str, List[float]]:
        """Best set load per exercise name key, one value per session, in order."""
        loads: Dict[str, List[float]] = {}
        for log in logs:
            for record in log.exercise_records:
                best = max((self.load_proxy(s) for s in record.sets_completed), default=0.0)
                if best > 0:
                    loads.setdefault(record.exercise_name_key, []).append(best)
        return loads

    def best_exercises(self, data: AppData, week_number: int) -> List[ExerciseImprovement]:
        """
        Exercises with the largest load improvement, in percent.

        Each exercise's best load this week is compared with its best load in
        the previous program week. Exercises not trained last week compare
        their first and last session of this week instead. Only positive
        improvements are kept; ties are ordered by name key.
        """
        program = self._find_program(data, week_number)
        if program is None:
            return []

        previous = None
        for candidate in data.week_programs:
            if candidate.week_index < week_number:
                previous = candidate

        current_loads = self._session_loads(self.week_logs(data, program))
        previous_loads = self._session_loads(self.week_logs(data, previous)) if previous else {}

        improvements = []
        for name, loads in current_loads.items():
            if name in previous_loads:
                baseline = max(previous_loads[name])
                latest = max(loads)
            elif len(loads) >= 2:
                baseline = loads[0]
                latest = loads[-1]
            else:
                continue

            if baseline <= 0:
                continue
            improvement = round((latest - baseline) / baseline * 100, 2)
            if improvement > 0:
                improvements.append(ExerciseImprovement(name=name, improvement=improvement))

        improvements.sort(key=lambda item: (-item.improvement, item.name))
        return improvements[: self.top_n]

    def current_streak(self, data: AppData, week_number: int) -> int:
        """
        Consecutive program weeks, ending at ``week_number``, that met the
        completion threshold.

        The walk follows program order backward and stops at the first week
        below the threshold or without planned sessions.
        """
        programs = [p for p in data.week_programs if p.week_index <= week_number]
        if not programs or programs[-1].week_index != week_number:
            return 0

        logged = {log.workout_id for log in data.session_logs}
        streak = 0
        for program in reversed(programs):
            planned = len(program.workouts)
            if planned == 0:
                break
            completed = len(program.workout_ids() & logged)
            if completed / planned < self.streak_threshold:
                break
            streak += 1
        return streak
