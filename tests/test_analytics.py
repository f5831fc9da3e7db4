"""
Tests for weekly summary generation.

Covers:
- Session completion, minutes and rating aggregates
- Weight, meal and water averages within the program's calendar week
- Best exercise improvements and tie-breaking
- Consecutive-week streak
- Missing data and idempotency
"""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest

from fitai.analytics import WeeklySummaryGenerator, week_bounds, weight_times_reps
from fitai.schemas import (
    AppData,
    Difficulty,
    ExerciseRecord,
    Meal,
    MealPlan,
    SessionLog,
    SetRecord,
    WaterIntake,
    WeekProgram,
    WeightEntry,
    Workout,
)

WEEK_ONE_MONDAY = datetime(2024, 3, 4, 18, 0)


def _workout(week: int, day: int) -> Workout:
    return Workout(
        title_key=f"workout_w{week}_d{day}",
        week_index=week,
        day_index=day,
        duration_minutes=45,
        difficulty=Difficulty.INTERMEDIATE,
        scheduled_date=WEEK_ONE_MONDAY + timedelta(weeks=week - 1, days=day),
    )


def _program(week: int, workouts: int = 2) -> WeekProgram:
    return WeekProgram(
        week_index=week,
        workouts=[_workout(week, day * 2) for day in range(workouts)],
        generated_at=WEEK_ONE_MONDAY + timedelta(weeks=week - 1, days=-1),
    )


def _log(workout: Workout, rating=None, duration=None, records=None, offset_hours=1) -> SessionLog:
    return SessionLog(
        date=workout.scheduled_date + timedelta(hours=offset_hours),
        workout_id=workout.id,
        workout_title_key=workout.title_key,
        rating=rating,
        duration_minutes=duration,
        exercise_records=records or [],
    )


def _record(name_key: str, weight: float, reps: int = 10) -> ExerciseRecord:
    return ExerciseRecord(
        exercise_id=uuid4(),
        exercise_name_key=name_key,
        sets_completed=[SetRecord(set_number=1, reps=reps, weight_kg=weight)],
    )


def _meal(kcal: int, protein: float) -> Meal:
    return Meal(
        name_key="meal",
        description_key="meal_desc",
        kcal=kcal,
        protein_g=protein,
        carbs_g=50.0,
        fats_g=20.0,
    )


@pytest.fixture
def generator():
    return WeeklySummaryGenerator()


@pytest.fixture
def one_week_data():
    """Week 1 with two workouts and one rated 45-minute session on the first."""
    program = _program(1)
    log = _log(program.workouts[0], rating=4, duration=45)
    return AppData(week_programs=[program], session_logs=[log])


# Training Aggregate Tests

def test_single_session_scenario(generator, one_week_data):
    """Test the basic one-of-two sessions week."""
    summary = generator.generate(one_week_data, 1)

    assert summary.week_number == 1
    assert summary.sessions_completed == 1
    assert summary.sessions_planned == 2
    assert summary.completion_rate == 0.5
    assert summary.total_training_minutes == 45
    assert summary.average_rating == 4.0


def test_repeated_logs_count_one_completed_session(generator, one_week_data):
    """Test that two logs for the same workout complete it once."""
    workout = one_week_data.week_programs[0].workouts[0]
    one_week_data.session_logs.append(_log(workout, rating=2, duration=30, offset_hours=3))

    summary = generator.generate(one_week_data, 1)

    assert summary.sessions_completed == 1
    assert summary.total_training_minutes == 75
    assert summary.average_rating == 3.0


def test_unrated_sessions_excluded_from_average(generator, one_week_data):
    workout = one_week_data.week_programs[0].workouts[1]
    one_week_data.session_logs.append(_log(workout))

    summary = generator.generate(one_week_data, 1)

    assert summary.sessions_completed == 2
    assert summary.average_rating == 4.0
    assert summary.total_training_minutes == 45


def test_dangling_workout_reference_is_skipped(generator, one_week_data):
    """Test that logs for workouts no longer in any program are ignored."""
    orphan = _workout(1, 5)
    one_week_data.session_logs.append(_log(orphan, rating=1, duration=90))

    summary = generator.generate(one_week_data, 1)

    assert summary.sessions_completed == 1
    assert summary.total_training_minutes == 45
    assert summary.average_rating == 4.0


def test_week_without_program_is_empty(generator, one_week_data):
    """Test that an unknown week yields zeros and nulls, not an error."""
    summary = generator.generate(one_week_data, 7)

    assert summary.sessions_planned == 0
    assert summary.completion_rate == 0.0
    assert summary.average_rating is None
    assert summary.weight_change is None
    assert summary.average_calories is None
    assert summary.best_exercises == []
    assert summary.current_streak == 0


def test_empty_data(generator):
    summary = generator.generate(AppData(), 1)

    assert summary.sessions_completed == 0
    assert summary.total_training_minutes == 0
    assert summary.average_water_glasses is None


# Body & Nutrition Tests

def test_weight_change_within_week(generator, one_week_data):
    """Test first-to-last weight change inside the calendar week."""
    one_week_data.weight_entries.extend([
        WeightEntry(date=datetime(2024, 3, 10, 7, 0), weight_kg=79.4),
        WeightEntry(date=datetime(2024, 3, 4, 7, 0), weight_kg=80.0),
        WeightEntry(date=datetime(2024, 3, 11, 7, 0), weight_kg=70.0),
    ])

    summary = generator.generate(one_week_data, 1)

    assert summary.start_weight == 80.0
    assert summary.end_weight == 79.4
    assert summary.weight_change == pytest.approx(-0.6)


def test_single_weight_entry_has_no_change(generator, one_week_data):
    one_week_data.weight_entries.append(WeightEntry(date=datetime(2024, 3, 5), weight_kg=80.0))

    summary = generator.generate(one_week_data, 1)

    assert summary.start_weight == 80.0
    assert summary.weight_change is None


def test_meal_and_water_averages(generator, one_week_data):
    """Test averages over meal plans and water intakes in the week."""
    one_week_data.meal_plans.extend([
        MealPlan(
            date=datetime(2024, 3, 4),
            breakfast=_meal(500, 30),
            lunch=_meal(700, 40),
            dinner=_meal(800, 50),
        ),
        MealPlan(
            date=datetime(2024, 3, 5),
            breakfast=_meal(400, 20),
            lunch=_meal(600, 40),
            dinner=_meal(600, 40),
        ),
    ])
    one_week_data.water_intakes.extend([
        WaterIntake(date=datetime(2024, 3, 4), glasses=6),
        WaterIntake(date=datetime(2024, 3, 6), glasses=8),
        WaterIntake(date=datetime(2024, 3, 12), glasses=1),
    ])

    summary = generator.generate(one_week_data, 1)

    assert summary.average_calories == pytest.approx(1800.0)
    assert summary.average_protein == pytest.approx(110.0)
    assert summary.average_carbs == pytest.approx(150.0)
    assert summary.average_fats == pytest.approx(60.0)
    assert summary.average_water_glasses == pytest.approx(7.0)


def test_week_bounds_start_on_monday():
    assert week_bounds(date(2024, 3, 7)) == (date(2024, 3, 4), date(2024, 3, 11))
    assert week_bounds(date(2024, 3, 4)) == (date(2024, 3, 4), date(2024, 3, 11))


# Best Exercise Tests

def test_best_exercises_against_previous_week(generator):
    """Test improvement of this week's best load over last week's best."""
    week1, week2 = _program(1), _program(2)
    logs = [
        _log(week1.workouts[0], records=[_record("ex_goblet_squats", 10.0)]),
        _log(week2.workouts[0], records=[_record("ex_goblet_squats", 12.0)]),
    ]
    data = AppData(week_programs=[week1, week2], session_logs=logs)

    best = generator.best_exercises(data, 2)

    assert [(b.name, b.improvement) for b in best] == [("ex_goblet_squats", 20.0)]


def test_best_exercises_within_week_without_history(generator):
    """Test first-vs-last session comparison for exercises new this week."""
    program = _program(1)
    logs = [
        _log(program.workouts[0], records=[_record("ex_lunges", 8.0)]),
        _log(program.workouts[1], records=[_record("ex_lunges", 10.0)]),
    ]
    data = AppData(week_programs=[program], session_logs=logs)

    best = generator.best_exercises(data, 1)

    assert best[0].name == "ex_lunges"
    assert best[0].improvement == 25.0


def test_best_exercises_ties_ordered_by_name_and_capped(generator):
    """Test deterministic ordering under equal improvements."""
    week1, week2 = _program(1), _program(2)
    names = ["ex_rows", "ex_curls", "ex_press", "ex_flyes"]
    logs = [
        _log(week1.workouts[0], records=[_record(n, 10.0) for n in names]),
        _log(week2.workouts[0], records=[_record(n, 11.0) for n in names]),
    ]
    data = AppData(week_programs=[week1, week2], session_logs=logs)

    best = generator.best_exercises(data, 2)

    assert [b.name for b in best] == ["ex_curls", "ex_flyes", "ex_press"]
    assert all(b.improvement == 10.0 for b in best)


def test_regressions_are_not_best_exercises(generator):
    week1, week2 = _program(1), _program(2)
    logs = [
        _log(week1.workouts[0], records=[_record("ex_rows", 12.0)]),
        _log(week2.workouts[0], records=[_record("ex_rows", 10.0)]),
    ]
    data = AppData(week_programs=[week1, week2], session_logs=logs)

    assert generator.best_exercises(data, 2) == []


def test_custom_load_proxy():
    """Test that the load estimate can be swapped (weight only here)."""
    program = _program(1)
    logs = [
        _log(program.workouts[0], records=[_record("ex_rows", 10.0, reps=12)]),
        _log(program.workouts[1], records=[_record("ex_rows", 11.0, reps=8)]),
    ]
    data = AppData(week_programs=[program], session_logs=logs)

    by_volume = WeeklySummaryGenerator(load_proxy=weight_times_reps).best_exercises(data, 1)
    by_weight = WeeklySummaryGenerator(load_proxy=lambda s: s.weight_kg).best_exercises(data, 1)

    assert by_volume == []
    assert by_weight[0].improvement == 10.0


# Streak Tests

def _completed_logs(program: WeekProgram, count: int):
    return [_log(w) for w in program.workouts[:count]]


def test_streak_counts_consecutive_completed_weeks(generator):
    programs = [_program(1), _program(2), _program(3)]
    logs = [log for p in programs for log in _completed_logs(p, 2)]
    data = AppData(week_programs=programs, session_logs=logs)

    assert generator.current_streak(data, 3) == 3
    assert generator.current_streak(data, 2) == 2


def test_streak_breaks_on_incomplete_week(generator):
    """Test that an earlier completed week does not count past a gap."""
    programs = [_program(1), _program(2), _program(3)]
    logs = _completed_logs(programs[0], 2) + _completed_logs(programs[1], 1) + _completed_logs(programs[2], 2)
    data = AppData(week_programs=programs, session_logs=logs)

    assert generator.current_streak(data, 3) == 1


def test_streak_resets_when_target_week_incomplete(generator):
    programs = [_program(1), _program(2)]
    logs = _completed_logs(programs[0], 2) + _completed_logs(programs[1], 1)
    data = AppData(week_programs=programs, session_logs=logs)

    assert generator.current_streak(data, 2) == 0


def test_streak_stops_at_empty_week(generator):
    programs = [_program(1), _program(2, workouts=0), _program(3)]
    logs = _completed_logs(programs[0], 2) + _completed_logs(programs[2], 2)
    data = AppData(week_programs=programs, session_logs=logs)

    assert generator.current_streak(data, 3) == 1


def test_streak_threshold_is_configurable():
    programs = [_program(1), _program(2)]
    logs = _completed_logs(programs[0], 1) + _completed_logs(programs[1], 1)
    data = AppData(week_programs=programs, session_logs=logs)

    assert WeeklySummaryGenerator(streak_threshold=0.5).current_streak(data, 2) == 2
    assert WeeklySummaryGenerator(streak_threshold=1.0).current_streak(data, 2) == 0


# Determinism Tests

def test_generation_is_idempotent(generator):
    """Test that identical inputs give identical summaries and leave data untouched."""
    week1, week2 = _program(1), _program(2)
    logs = [
        _log(week1.workouts[0], rating=3, duration=40, records=[_record(n, 10.0) for n in ("ex_b", "ex_a")]),
        _log(week2.workouts[0], rating=5, duration=50, records=[_record(n, 12.0) for n in ("ex_b", "ex_a")]),
    ]
    data = AppData(week_programs=[week1, week2], session_logs=logs)
    before = data.model_copy(deep=True)

    first = generator.generate(data, 2)
    second = generator.generate(data, 2)

    assert first == second
    assert [b.name for b in first.best_exercises] == ["ex_a", "ex_b"]
    assert data == before
