"""
Aggregate store: the single owner of the persisted AppData document.

The store loads the whole document from a medium, keeps the live graph in
memory, and writes the whole document back on save. Callers never persist
entities individually; they mutate through the store's helpers (or a
transaction) and then call save(). Readers receive deep-copied snapshots.

All access to the live graph is serialized by one re-entrant lock.
"""

import bisect
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Iterator, List, Optional, Union
from uuid import UUID

from fitai import codec, progression
from fitai.analytics import WeeklySummaryGenerator
from fitai.errors import DecodeError, DomainValidationError, StoreIOError
from fitai.schemas import (
    AppData,
    ChatMessage,
    Equipment,
    MealPlan,
    SessionLog,
    UserProfile,
    WaterIntake,
    WeekProgram,
    WeeklySummary,
    WeightEntry,
    WeightProgress,
    Workout,
)
from fitai.storage import DEFAULT_DOCUMENT_KEY, DocumentMedium, JsonFileMedium, SqlDocumentMedium

logger = logging.getLogger(__name__)

DayLike = Union[date, datetime]


def _as_day(value: DayLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _same_day(moment: datetime, day: DayLike) -> bool:
    return moment.date() == _as_day(day)


def _ensure_new_id(items, item, label: str) -> None:
    if any(existing.id == item.id for existing in items):
        raise DomainValidationError(f"{label} {item.id} already exists")


class AppDataStore:
    """
    Load/save lifecycle and mutation gateway for AppData.

    Args:
        medium: Where the encoded document lives
        summary_generator: Generator used for weekly summaries
        strict: Fail load on the first undecodable entity instead of dropping it
        autosave: Save at the end of every successful transaction()
    """

    def __init__(
        self,
        medium: DocumentMedium,
        summary_generator: Optional[WeeklySummaryGenerator] = None,
        strict: bool = False,
        autosave: bool = False,
    ):
        self.medium = medium
        self.summary_generator = summary_generator or WeeklySummaryGenerator()
        self.strict = strict
        self.autosave = autosave
        self.last_decode_errors: List[DecodeError] = []
        self._data = AppData()
        self._lock = threading.RLock()

    @classmethod
    def from_path(cls, path: Path, **kwargs) -> "AppDataStore":
        """Create a store backed by a JSON file."""
        return cls(JsonFileMedium(path), **kwargs)

    @classmethod
    def from_database(
        cls, database_url: str, key: str = DEFAULT_DOCUMENT_KEY, **kwargs
    ) -> "AppDataStore":
        """Create a store backed by a SQL database row."""
        return cls(SqlDocumentMedium(database_url, key=key), **kwargs)

    # ===== LIFECYCLE =====

    def load(self) -> AppData:
        """
        Load the document from the medium.

        First run (nothing stored) yields a default AppData. Entities that
        fail to decode are dropped and listed in ``last_decode_errors``.

        Returns:
            Snapshot of the loaded data

        Raises:
            StoreIOError: If the medium cannot be read
            DocumentDecodeError: If the document is unreadable (or strict decode fails)
        """
        with self._lock:
            payload = self.medium.read()
            if payload is None:
                logger.info("No stored data found, starting fresh")
                self._data = AppData()
                self.last_decode_errors = []
                return self.snapshot()

            report = codec.loads(payload, strict=self.strict)
            self._data = report.data
            self.last_decode_errors = report.errors
            for error in report.errors:
                logger.warning("Dropped entity while loading: %s", error)
            logger.info(
                "Loaded app data (schema v%s, %d sessions, %d programs)",
                report.schema_version,
                len(self._data.session_logs),
                len(self._data.week_programs),
            )
            return self.snapshot()

    def save(self, data: Optional[AppData] = None) -> None:
        """
        Persist the whole aggregate atomically.

        Args:
            data: Replacement aggregate; None saves the current live graph

        Raises:
            StoreIOError: If the medium write fails (the previous document is kept)
            DomainValidationError: If the graph breaks a collection invariant
                (nothing is written)
        """
        with self._lock:
            candidate = self._data if data is None else data
            try:
                candidate.check_collections()
            except ValueError as e:
                raise DomainValidationError(f"Refusing to save invalid data: {e}") from e
            if data is not None:
                self._data = data.model_copy(deep=True)
            payload = codec.dumps(self._data)
            try:
                self.medium.write(payload)
            except StoreIOError:
                logger.error("Saving app data failed")
                raise
            logger.debug("Saved app data (%d bytes)", len(payload))

    def snapshot(self) -> AppData:
        """Deep copy of the live graph, safe to hand to other components."""
        with self._lock:
            return self._data.model_copy(deep=True)

    @contextmanager
    def transaction(self) -> Iterator[AppData]:
        """
        Mutate the live graph directly under the store lock.

        Changes are rolled back if the block raises. With ``autosave`` the
        document is saved when the block exits cleanly (and rolled back if
        that save fails); otherwise persisting requires an explicit save().
        """
        with self._lock:
            backup = self._data.model_copy(deep=True)
            try:
                yield self._data
                if self.autosave:
                    self.save()
            except BaseException:
                self._data = backup
                raise

    def reset(self) -> None:
        """Drop all data, in memory and on the medium."""
        with self._lock:
            logger.info("Resetting all data")
            self._data = AppData()
            self.last_decode_errors = []
            self.medium.clear()

    # ===== PROFILE =====

    @property
    def profile(self) -> Optional[UserProfile]:
        with self._lock:
            profile = self._data.profile
            return profile.model_copy(deep=True) if profile else None

    @property
    def has_profile(self) -> bool:
        with self._lock:
            profile = self._data.profile
            return profile is not None and profile.has_accepted_disclaimer

    def set_profile(self, profile: UserProfile) -> None:
        """
        Replace the profile.

        Raises:
            DomainValidationError: If the new profile's current week is behind the stored one
        """
        with self._lock:
            existing = self._data.profile
            if existing is not None and profile.current_week < existing.current_week:
                raise DomainValidationError(
                    f"current_week cannot decrease ({existing.current_week} -> {profile.current_week})"
                )
            self._data.profile = profile.model_copy(deep=True)

    def advance_week(self) -> int:
        """Move the profile to the next program week and return it."""
        with self._lock:
            profile = self._require_profile()
            profile.current_week += 1
            logger.info("Advanced to week %d", profile.current_week)
            return profile.current_week

    def update_current_week_if_needed(self, now: Optional[datetime] = None) -> bool:
        """
        Advance the current week once its program is over.

        The week is over when every workout is completed, or when more than
        one day has passed since its last scheduled workout.

        Returns:
            True if the week was advanced
        """
        now = now or datetime.now()
        with self._lock:
            profile = self._data.profile
            if profile is None:
                return False
            program = self._find_program(profile.current_week)
            if program is None:
                return False
            scheduled = [w.scheduled_date for w in program.workouts if w.scheduled_date]
            if not scheduled:
                return False

            all_completed = all(w.is_completed for w in program.workouts)
            days_since_last = (now.date() - max(scheduled).date()).days
            if all_completed or days_since_last > 1:
                self.advance_week()
                return True
            return False

    def _require_profile(self) -> UserProfile:
        if self._data.profile is None:
            raise DomainValidationError("No profile exists yet")
        return self._data.profile

    # ===== PROGRAMS =====

    def _find_program(self, week: int) -> Optional[WeekProgram]:
        for program in self._data.week_programs:
            if program.week_index == week:
                return program
        return None

    def _find_workout(self, workout_id: UUID) -> Optional[Workout]:
        return self._data.find_workout(workout_id)

    def add_week_program(self, program: WeekProgram) -> None:
        """
        Insert a program, replacing any program for the same week; order stays ascending.

        Raises:
            DomainValidationError: If another week's program already has this id
        """
        with self._lock:
            programs = self._data.week_programs
            _ensure_new_id(
                [p for p in programs if p.week_index != program.week_index], program, "Week program"
            )
            program = program.model_copy(deep=True)
            indices = [p.week_index for p in programs]
            position = bisect.bisect_left(indices, program.week_index)
            if position < len(programs) and programs[position].week_index == program.week_index:
                programs[position] = program
                logger.info("Replaced program for week %d", program.week_index)
            else:
                programs.insert(position, program)
                logger.info("Added program for week %d", program.week_index)

    def get_week_program(self, week: int) -> Optional[WeekProgram]:
        with self._lock:
            program = self._find_program(week)
            return program.model_copy(deep=True) if program else None

    def delete_week_program(self, week: int) -> None:
        with self._lock:
            self._data.week_programs = [
                p for p in self._data.week_programs if p.week_index != week
            ]

    def current_week_program(self) -> Optional[WeekProgram]:
        with self._lock:
            profile = self._data.profile
            if profile is None:
                return None
            return self.get_week_program(profile.current_week)

    def today_workout(self, today: Optional[DayLike] = None) -> Optional[Workout]:
        """Workout of the current week scheduled for ``today``, if any."""
        day = _as_day(today or datetime.now())
        program = self.current_week_program()
        if program is None:
            return None
        for workout in program.workouts:
            if workout.scheduled_date and _same_day(workout.scheduled_date, day):
                return workout
        return None

    def mark_workout_completed(self, workout_id: UUID, completed: bool = True) -> None:
        with self._lock:
            workout = self._find_workout(workout_id)
            if workout is not None:
                workout.is_completed = completed

    # ===== SESSION LOGS =====

    def add_session_log(self, log: SessionLog) -> List[str]:
        """
        Append a session log, mark its workout completed and update
        exercise weight history.

        Returns:
            Exercise name keys whose suggested weight changed

        Raises:
            DomainValidationError: If the workout is unknown or the id is already logged
        """
        with self._lock:
            if self._find_workout(log.workout_id) is None:
                raise DomainValidationError(f"Session references unknown workout {log.workout_id}")
            _ensure_new_id(self._data.session_logs, log, "Session log")

            log = log.model_copy(deep=True)
            self._data.session_logs.append(log)
            self.mark_workout_completed(log.workout_id)
            return progression.apply_session(self._data.exercise_weight_history, log)

    def delete_session_log(self, log_id: UUID) -> None:
        """Remove a log; its workout is un-marked when no other log references it."""
        with self._lock:
            removed = [log for log in self._data.session_logs if log.id == log_id]
            if not removed:
                return
            self._data.session_logs = [
                log for log in self._data.session_logs if log.id != log_id
            ]
            workout_id = removed[0].workout_id
            if not any(log.workout_id == workout_id for log in self._data.session_logs):
                self.mark_workout_completed(workout_id, completed=False)

    def session_logs(self, limit: Optional[int] = None) -> List[SessionLog]:
        """Session logs, newest first."""
        with self._lock:
            logs = sorted(self._data.session_logs, key=lambda log: log.date, reverse=True)
            if limit is not None:
                logs = logs[:limit]
            return [log.model_copy(deep=True) for log in logs]

    def session_log_for(self, workout_id: UUID) -> Optional[SessionLog]:
        with self._lock:
            for log in self._data.session_logs:
                if log.workout_id == workout_id:
                    return log.model_copy(deep=True)
            return None

    # ===== EXERCISE WEIGHT HISTORY =====

    def suggested_weight(self, exercise_name_key: str) -> Optional[float]:
        with self._lock:
            entry = progression.find_history(self._data.exercise_weight_history, exercise_name_key)
            return entry.suggested_weight_kg if entry else None

    def last_weight(self, exercise_name_key: str) -> Optional[float]:
        with self._lock:
            entry = progression.find_history(self._data.exercise_weight_history, exercise_name_key)
            return entry.last_weight_kg if entry else None

    def default_weight(self, exercise_name_key: str, equipment: Equipment) -> float:
        with self._lock:
            return progression.default_weight(
                exercise_name_key, equipment, self._data.exercise_weight_history
            )

    # ===== WEIGHT ENTRIES =====

    def _sync_profile_weight(self) -> None:
        latest = max(self._data.weight_entries, key=lambda e: e.date, default=None)
        if latest is not None and self._data.profile is not None:
            self._data.profile.weight_kg = latest.weight_kg

    def add_weight_entry(self, entry: WeightEntry) -> None:
        """
        Append a weight entry; the profile weight follows the latest entry.

        Raises:
            DomainValidationError: If an entry with the same id exists
        """
        with self._lock:
            _ensure_new_id(self._data.weight_entries, entry, "Weight entry")
            self._data.weight_entries.append(entry.model_copy(deep=True))
            self._sync_profile_weight()

    def update_weight_entry(self, entry: WeightEntry) -> None:
        with self._lock:
            for index, existing in enumerate(self._data.weight_entries):
                if existing.id == entry.id:
                    self._data.weight_entries[index] = entry.model_copy(deep=True)
                    self._sync_profile_weight()
                    return

    def delete_weight_entry(self, entry_id: UUID) -> None:
        with self._lock:
            self._data.weight_entries = [
                e for e in self._data.weight_entries if e.id != entry_id
            ]

    def weight_entries(self) -> List[WeightEntry]:
        """Weight entries, oldest first."""
        with self._lock:
            entries = sorted(self._data.weight_entries, key=lambda e: e.date)
            return [e.model_copy(deep=True) for e in entries]

    def latest_weight(self) -> Optional[float]:
        with self._lock:
            latest = max(self._data.weight_entries, key=lambda e: e.date, default=None)
            if latest is not None:
                return latest.weight_kg
            return self._data.profile.weight_kg if self._data.profile else None

    # ===== MEAL PLANS =====

    def add_meal_plan(self, plan: MealPlan) -> None:
        """
        Store a meal plan, replacing any plan for the same day.

        Raises:
            DomainValidationError: If a plan for another day already has this id
        """
        with self._lock:
            _ensure_new_id(
                [p for p in self._data.meal_plans if not _same_day(p.date, plan.date)],
                plan,
                "Meal plan",
            )
            plan = plan.model_copy(deep=True)
            for index, existing in enumerate(self._data.meal_plans):
                if _same_day(existing.date, plan.date):
                    self._data.meal_plans[index] = plan
                    return
            self._data.meal_plans.append(plan)

    def meal_plan_for(self, day: DayLike) -> Optional[MealPlan]:
        with self._lock:
            for plan in self._data.meal_plans:
                if _same_day(plan.date, day):
                    return plan.model_copy(deep=True)
            return None

    def delete_meal_plan(self, day: DayLike) -> None:
        with self._lock:
            self._data.meal_plans = [
                p for p in self._data.meal_plans if not _same_day(p.date, day)
            ]

    # ===== WATER =====

    def _water_for(self, day: DayLike) -> Optional[WaterIntake]:
        for intake in self._data.water_intakes:
            if _same_day(intake.date, day):
                return intake
        return None

    def _water_for_or_create(self, day: DayLike) -> WaterIntake:
        intake = self._water_for(day)
        if intake is None:
            intake = WaterIntake(date=datetime.combine(_as_day(day), time()))
            self._data.water_intakes.append(intake)
        return intake

    def water_intake_for(self, day: DayLike) -> Optional[WaterIntake]:
        with self._lock:
            intake = self._water_for(day)
            return intake.model_copy(deep=True) if intake else None

    def add_water_glass(self, day: DayLike) -> int:
        """Add one glass for the day and return the new count."""
        with self._lock:
            intake = self._water_for_or_create(day)
            intake.glasses += 1
            return intake.glasses

    def remove_water_glass(self, day: DayLike) -> int:
        """Remove one glass for the day (never below zero) and return the new count."""
        with self._lock:
            intake = self._water_for(day)
            if intake is None:
                return 0
            if intake.glasses > 0:
                intake.glasses -= 1
            return intake.glasses

    def set_water_target(self, glasses: int, day: DayLike) -> None:
        if glasses < 0:
            raise DomainValidationError(f"Water target cannot be negative, got {glasses}")
        with self._lock:
            self._water_for_or_create(day).target_glasses = glasses

    # ===== CHAT =====

    def add_chat_message(self, message: ChatMessage) -> None:
        with self._lock:
            _ensure_new_id(self._data.chat_history, message, "Chat message")
            self._data.chat_history.append(message.model_copy(deep=True))

    def chat_history(self) -> List[ChatMessage]:
        with self._lock:
            messages = sorted(self._data.chat_history, key=lambda m: m.timestamp)
            return [m.model_copy(deep=True) for m in messages]

    def clear_chat_history(self) -> None:
        with self._lock:
            self._data.chat_history = []

    # ===== STATISTICS =====

    def total_workouts_completed(self) -> int:
        """Number of logged sessions, repeated logs of one workout included."""
        with self._lock:
            return len(self._data.session_logs)

    def weekly_workouts_completed(self, now: Optional[datetime] = None) -> int:
        """Number of sessions logged in the seven days up to ``now``."""
        since = (now or datetime.now()) - timedelta(days=7)
        with self._lock:
            return sum(1 for log in self._data.session_logs if log.date >= since)

    def weight_progress(self) -> Optional[WeightProgress]:
        """
        Weight change from the oldest entry to the newest.

        Returns:
            WeightProgress, or None when no weight has been recorded
        """
        entries = self.weight_entries()
        if not entries:
            return None
        first, last = entries[0], entries[-1]
        return WeightProgress(
            start_kg=first.weight_kg,
            current_kg=last.weight_kg,
            change_kg=round(last.weight_kg - first.weight_kg, 2),
        )

    def is_today_workout_completed(self, today: Optional[DayLike] = None) -> bool:
        workout = self.today_workout(today)
        return workout is not None and workout.is_completed

    def today_meal_plan(self, today: Optional[DayLike] = None) -> Optional[MealPlan]:
        return self.meal_plan_for(today or datetime.now())

    def should_show_weekly_summary(self, now: Optional[datetime] = None) -> bool:
        """True on Sundays from 18:00, when the week's summary is due."""
        now = now or datetime.now()
        return now.weekday() == 6 and now.hour >= 18

    # ===== WEEKLY SUMMARIES =====

    def weekly_summary(self, week: Optional[int] = None) -> WeeklySummary:
        """Compute a fresh summary (defaults to the profile's current week)."""
        data = self.snapshot()
        if week is None:
            week = data.profile.current_week if data.profile else 1
        return self.summary_generator.generate(data, week)

    def cached_weekly_summary(self, week: int) -> Optional[WeeklySummary]:
        with self._lock:
            for summary in self._data.weekly_summaries:
                if summary.week_number == week:
                    return summary.model_copy(deep=True)
            return None

    def save_weekly_summary(self, summary: WeeklySummary) -> None:
        """Cache a summary, replacing any previous one for the same week."""
        with self._lock:
            self._data.weekly_summaries = [
                s for s in self._data.weekly_summaries if s.week_number != summary.week_number
            ]
            self._data.weekly_summaries.append(summary.model_copy(deep=True))

    def get_or_create_weekly_summary(self) -> WeeklySummary:
        """Cached summary for the current week if it carries recommendations, else a fresh one."""
        with self._lock:
            week = self._data.profile.current_week if self._data.profile else 1
            cached = self.cached_weekly_summary(week)
            if cached is not None and cached.has_ai_recommendations:
                return cached
            return self.weekly_summary(week)

    # ===== SYNC =====

    @property
    def last_sync_date(self) -> Optional[datetime]:
        with self._lock:
            return self._data.last_sync_date

    @last_sync_date.setter
    def last_sync_date(self, value: Optional[datetime]) -> None:
        with self._lock:
            self._data.last_sync_date = value
