"""
Pydantic models for the fitness tracker's persisted data.

This module defines the core data structures for:
- User Profile: physical stats, goals, notification and dietary preferences
- Training: exercises, workouts, week programs and session logs
- Tracking: weight entries, water intake, meal plans and chat history
- Derived records: exercise weight history and weekly summaries
- AppData: the aggregate root, the single unit of persistence

Wire names are camelCase (``weekPrograms``, ``isChallenge``) and stay stable
across releases; Python attributes are snake_case. Defaults applied when
decoding older documents live in ``fitai.codec.FIELD_DEFAULTS``.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


ML_PER_GLASS = 250


def as_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class FitAIModel(BaseModel):
    """
    Base model: camelCase aliases on the wire, unknown fields ignored.

    Assignments are validated, so constraints hold for in-place edits too.
    Every datetime is stored naive in local time; documents written with a
    UTC offset (``2024-03-04T08:00:00Z``) are converted on the way in.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def normalize_datetimes(cls, v):
        if isinstance(v, datetime):
            return as_local_naive(v)
        return v


# ============================================================================
# Enumerations
# ============================================================================

class Sex(str, Enum):
    """Biological sex used for metabolic estimates."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

    @property
    def localized_key(self) -> str:
        return f"sex_{self.value}"


class Equipment(str, Enum):
    """Equipment available to the user or required by an exercise."""
    DUMBBELLS = "dumbbells"
    NONE = "none"

    @property
    def localized_key(self) -> str:
        return f"equipment_{self.value}"


class AppLanguage(str, Enum):
    """Interface language."""
    FRENCH = "fr"
    ENGLISH = "en"


class FitnessGoal(str, Enum):
    """Main objective driving nutrition targets and programming."""
    WEIGHT_LOSS = "weight_loss"
    MUSCLE_GAIN = "muscle_gain"
    MAINTENANCE = "maintenance"
    RECOMPOSITION = "recomposition"

    @property
    def localized_key(self) -> str:
        return f"goal_{self.value}"

    @property
    def caloric_adjustment(self) -> float:
        """Daily kcal offset against maintenance."""
        return CALORIC_ADJUSTMENT[self]

    @property
    def protein_multiplier(self) -> float:
        """Protein target in grams per kg of body weight."""
        return PROTEIN_MULTIPLIER[self]


class DietaryRegime(str, Enum):
    """Dietary regime followed by the user."""
    STANDARD = "standard"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    PESCATARIAN = "pescatarian"


class FoodAllergy(str, Enum):
    """Declared food allergies."""
    GLUTEN = "gluten"
    LACTOSE = "lactose"
    NUTS = "nuts"
    PEANUTS = "peanuts"
    SHELLFISH = "shellfish"
    EGGS = "eggs"
    SOY = "soy"
    FISH = "fish"


class FoodDislike(str, Enum):
    """Foods the user prefers to avoid."""
    RED_MEAT = "red_meat"
    PORK = "pork"
    CHICKEN = "chicken"
    FISH = "fish"
    SEAFOOD = "seafood"
    EGGS = "eggs"
    DAIRY = "dairy"
    SPICY = "spicy"
    MUSHROOMS = "mushrooms"
    ONIONS = "onions"


class MuscleGroup(str, Enum):
    """Muscle groups targeted by an exercise."""
    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    LEGS = "legs"
    CORE = "core"
    GLUTES = "glutes"
    FULL_BODY = "full_body"


class Difficulty(str, Enum):
    """Programmed difficulty of a workout."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SessionDifficulty(str, Enum):
    """User feedback on how hard a completed session felt."""
    TOO_EASY = "too_easy"
    JUST_RIGHT = "just_right"
    TOO_HARD = "too_hard"

    @property
    def progression_multiplier(self) -> float:
        """Multiplier applied to the last working weight for the next session."""
        return PROGRESSION_MULTIPLIER[self]


# Lookup tables keyed by variant. Every variant must have an entry.
CALORIC_ADJUSTMENT: Dict[FitnessGoal, float] = {
    FitnessGoal.WEIGHT_LOSS: -300.0,
    FitnessGoal.MUSCLE_GAIN: 300.0,
    FitnessGoal.MAINTENANCE: 0.0,
    FitnessGoal.RECOMPOSITION: 0.0,
}

PROTEIN_MULTIPLIER: Dict[FitnessGoal, float] = {
    FitnessGoal.WEIGHT_LOSS: 2.2,
    FitnessGoal.MUSCLE_GAIN: 2.0,
    FitnessGoal.MAINTENANCE: 1.8,
    FitnessGoal.RECOMPOSITION: 2.4,
}

PROGRESSION_MULTIPLIER: Dict[SessionDifficulty, float] = {
    SessionDifficulty.TOO_EASY: 1.10,
    SessionDifficulty.JUST_RIGHT: 1.025,
    SessionDifficulty.TOO_HARD: 0.95,
}


# ============================================================================
# User Profile
# ============================================================================

class UserProfile(FitAIModel):
    """
    The user's identity, physical stats and preferences.

    Notification fields are read by the external scheduler; the core never
    schedules anything itself.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(default="")
    age: int = Field(default=25, ge=0, le=130)
    weight_kg: float = Field(default=70.0, ge=0.0)
    height_cm: float = Field(default=175.0, ge=0.0)
    sex: Sex = Field(default=Sex.MALE)
    fitness_goal: FitnessGoal = Field(default=FitnessGoal.MUSCLE_GAIN)
    equipment: Equipment = Field(default=Equipment.DUMBBELLS)
    sessions_per_week: int = Field(default=4, ge=1, le=7)
    language: AppLanguage = Field(default=AppLanguage.FRENCH)
    has_accepted_disclaimer: bool = Field(default=False)

    notifications_enabled: bool = Field(default=True)
    reminder_minutes_before: int = Field(default=30, ge=0)
    preferred_workout_hour: int = Field(default=18, ge=0, le=23)
    preferred_workout_minute: int = Field(default=0, ge=0, le=59)
    preferred_workout_days: Set[int] = Field(
        default_factory=set,
        description="Weekday indices 1-7 (1=Sunday)",
    )

    created_at: datetime = Field(default_factory=datetime.now)
    current_week: int = Field(default=1, ge=1)

    dietary_regime: DietaryRegime = Field(default=DietaryRegime.STANDARD)
    food_allergies: Set[FoodAllergy] = Field(default_factory=set)
    food_dislikes: Set[FoodDislike] = Field(default_factory=set)

    @field_validator("preferred_workout_days")
    @classmethod
    def validate_weekdays(cls, v: Set[int]) -> Set[int]:
        """Weekday indices must be within 1-7."""
        invalid = sorted(day for day in v if not 1 <= day <= 7)
        if invalid:
            raise ValueError(f"Weekday indices must be between 1 and 7, got {invalid}")
        return v

    @field_serializer("preferred_workout_days")
    def serialize_weekdays(self, v: Set[int]) -> List[int]:
        return sorted(v)

    @field_serializer("food_allergies", "food_dislikes")
    def serialize_food_tags(self, v: Set[Enum]) -> List[str]:
        return sorted(item.value for item in v)


# ============================================================================
# Workout & Exercise
# ============================================================================

class Exercise(FitAIModel):
    """A single exercise prescription inside a workout."""

    id: UUID = Field(default_factory=uuid4)
    name_key: str
    muscle_groups: List[MuscleGroup] = Field(default_factory=list)
    equipment: Equipment
    sets: int = Field(..., ge=1)
    reps: int = Field(..., ge=1)
    tempo: Optional[str] = None
    notes_key: Optional[str] = None
    rest_seconds: int = Field(default=90, ge=0)

    @field_validator("muscle_groups")
    @classmethod
    def dedupe_muscle_groups(cls, v: List[MuscleGroup]) -> List[MuscleGroup]:
        """Muscle groups form an ordered set: keep first occurrence only."""
        seen = set()
        ordered = []
        for group in v:
            if group not in seen:
                seen.add(group)
                ordered.append(group)
        return ordered


class Workout(FitAIModel):
    """A workout occupying one (week, day) slot of the program."""

    id: UUID = Field(default_factory=uuid4)
    title_key: str
    week_index: int = Field(..., ge=0)
    day_index: int = Field(..., ge=0)
    exercises: List[Exercise] = Field(default_factory=list)
    duration_minutes: int = Field(..., ge=0)
    difficulty: Difficulty
    scheduled_date: Optional[datetime] = None
    is_completed: bool = False
    is_challenge: bool = False


class WeekProgram(FitAIModel):
    """All workouts generated for one program week."""

    id: UUID = Field(default_factory=uuid4)
    week_index: int = Field(..., ge=0)
    workouts: List[Workout] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)

    def workout_ids(self) -> Set[UUID]:
        return {workout.id for workout in self.workouts}


# ============================================================================
# Session Logging
# ============================================================================

class SetRecord(FitAIModel):
    """One performed set."""

    id: UUID = Field(default_factory=uuid4)
    set_number: int = Field(..., ge=0)
    reps: int = Field(..., ge=0)
    weight_kg: float = Field(..., ge=0.0)
    is_completed: bool = False


class ExerciseRecord(FitAIModel):
    """Sets performed for one exercise during a session."""

    id: UUID = Field(default_factory=uuid4)
    exercise_id: UUID
    exercise_name_key: str
    sets_completed: List[SetRecord] = Field(default_factory=list)

    def max_weight(self) -> float:
        """Heaviest weight used across all sets (0.0 when no sets)."""
        return max((s.weight_kg for s in self.sets_completed), default=0.0)


class SessionLog(FitAIModel):
    """
    Immutable record of a completed or attempted workout.

    Logs are created by the session flow and never edited by analytics.
    """

    id: UUID = Field(default_factory=uuid4)
    date: datetime
    workout_id: UUID
    workout_title_key: str
    notes: str = ""
    exercise_records: List[ExerciseRecord] = Field(default_factory=list)
    duration_minutes: Optional[int] = Field(default=None, ge=0)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    difficulty: Optional[SessionDifficulty] = None


# ============================================================================
# Weight, Water, Meals, Chat
# ============================================================================

class WeightEntry(FitAIModel):
    """Body weight measurement. Several per day are allowed."""

    id: UUID = Field(default_factory=uuid4)
    date: datetime
    weight_kg: float = Field(..., ge=0.0)
    notes: str = ""


class WeightProgress(FitAIModel):
    """Body weight change from the oldest to the newest entry. Not persisted."""

    start_kg: float
    current_kg: float
    change_kg: float


class WaterIntake(FitAIModel):
    """Glasses of water drunk on a given day."""

    id: UUID = Field(default_factory=uuid4)
    date: datetime
    glasses: int = Field(default=0, ge=0)
    target_glasses: int = Field(default=8, ge=0)

    @property
    def total_ml(self) -> int:
        return self.glasses * ML_PER_GLASS

    @property
    def target_ml(self) -> int:
        return self.target_glasses * ML_PER_GLASS

    @property
    def progress(self) -> float:
        """Fraction of the daily target reached, clamped to 1.0."""
        if self.target_glasses <= 0:
            return 0.0
        return min(self.glasses / self.target_glasses, 1.0)


class Meal(FitAIModel):
    """A single meal with its nutrition facts."""

    id: UUID = Field(default_factory=uuid4)
    name_key: str
    description_key: str
    kcal: int = Field(..., ge=0)
    protein_g: float = Field(..., ge=0.0)
    carbs_g: float = Field(..., ge=0.0)
    fats_g: float = Field(..., ge=0.0)
    ingredients: List[str] = Field(default_factory=list)
    instructions: Optional[str] = None


class MealPlan(FitAIModel):
    """Breakfast, lunch, dinner and snacks planned for one date."""

    id: UUID = Field(default_factory=uuid4)
    date: datetime
    breakfast: Meal
    lunch: Meal
    dinner: Meal
    snacks: List[Meal] = Field(default_factory=list)

    def meals(self) -> List[Meal]:
        return [self.breakfast, self.lunch, self.dinner, *self.snacks]

    @property
    def total_kcal(self) -> int:
        return sum(meal.kcal for meal in self.meals())

    @property
    def total_protein(self) -> float:
        return sum(meal.protein_g for meal in self.meals())

    @property
    def total_carbs(self) -> float:
        return sum(meal.carbs_g for meal in self.meals())

    @property
    def total_fats(self) -> float:
        return sum(meal.fats_g for meal in self.meals())


class ChatMessage(FitAIModel):
    """One message of the assistant conversation."""

    id: UUID = Field(default_factory=uuid4)
    content: str
    is_from_user: bool
    timestamp: datetime = Field(default_factory=datetime.now)


# ============================================================================
# Derived Records
# ============================================================================

class ExerciseWeightHistory(FitAIModel):
    """Last used and suggested working weight for one exercise name key."""

    exercise_name_key: str
    last_weight_kg: float = Field(..., ge=0.0)
    suggested_weight_kg: float = Field(..., ge=0.0)
    last_updated: datetime = Field(default_factory=datetime.now)


class ExerciseImprovement(FitAIModel):
    """Load improvement of one exercise, in percent."""

    name: str
    improvement: float


class WeeklySummary(FitAIModel):
    """
    Training and nutrition summary of one program week.

    Produced by ``fitai.analytics.WeeklySummaryGenerator``; never user-entered.
    ``ai_recommendations`` is written by an external assistant and cached here.
    """

    week_number: int = Field(..., ge=0)
    sessions_completed: int = Field(default=0, ge=0)
    sessions_planned: int = Field(default=0, ge=0)
    total_training_minutes: int = Field(default=0, ge=0)
    weight_change: Optional[float] = None
    start_weight: Optional[float] = None
    end_weight: Optional[float] = None
    average_rating: Optional[float] = None
    best_exercises: List[ExerciseImprovement] = Field(default_factory=list)
    average_calories: Optional[float] = None
    average_protein: Optional[float] = None
    average_carbs: Optional[float] = None
    average_fats: Optional[float] = None
    average_water_glasses: Optional[float] = None
    current_streak: int = Field(default=0, ge=0)
    ai_recommendations: Optional[str] = None
    generated_at: Optional[datetime] = None

    @property
    def completion_rate(self) -> float:
        if self.sessions_planned <= 0:
            return 0.0
        return self.sessions_completed / self.sessions_planned

    @property
    def has_ai_recommendations(self) -> bool:
        return bool(self.ai_recommendations)


# ============================================================================
# App Data (aggregate root)
# ============================================================================

class AppData(FitAIModel):
    """
    Aggregate root bundling every entity collection.

    Persisted and loaded as a whole by ``fitai.store.AppDataStore``.
    """

    profile: Optional[UserProfile] = None
    week_programs: List[WeekProgram] = Field(default_factory=list)
    session_logs: List[SessionLog] = Field(default_factory=list)
    weight_entries: List[WeightEntry] = Field(default_factory=list)
    meal_plans: List[MealPlan] = Field(default_factory=list)
    water_intakes: List[WaterIntake] = Field(default_factory=list)
    chat_history: List[ChatMessage] = Field(default_factory=list)
    exercise_weight_history: List[ExerciseWeightHistory] = Field(default_factory=list)
    weekly_summaries: List[WeeklySummary] = Field(default_factory=list)
    last_sync_date: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_collections(self):
        self.check_collections()
        return self

    def check_collections(self) -> None:
        """
        Check the graph-wide invariants.

        Week programs ascend strictly by week index, ids are unique per
        collection and exercise history keys are unique.

        Raises:
            ValueError: Naming the first invariant that does not hold
        """
        indices = [program.week_index for program in self.week_programs]
        for previous, current in zip(indices, indices[1:]):
            if current <= previous:
                raise ValueError(
                    f"Week programs must be in ascending week order, "
                    f"got week {current} after week {previous}"
                )

        for name in (
            "week_programs",
            "session_logs",
            "weight_entries",
            "meal_plans",
            "water_intakes",
            "chat_history",
        ):
            ids = [item.id for item in getattr(self, name)]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate identifiers in {name}")

        keys = [h.exercise_name_key for h in self.exercise_weight_history]
        if len(keys) != len(set(keys)):
            raise ValueError("Duplicate exercise name keys in exercise_weight_history")

    def all_workouts(self) -> List[Workout]:
        return [w for program in self.week_programs for w in program.workouts]

    def find_workout(self, workout_id: UUID) -> Optional[Workout]:
        for workout in self.all_workouts():
            if workout.id == workout_id:
                return workout
        return None
