"""
Versioned decode/encode of the AppData document.

Decoding any previously persisted document must succeed, whichever historical
field set it was written with. Each entity is built field by field:

- a field absent (or null) in the input takes its default from FIELD_DEFAULTS
- a field not known to the current schema is ignored
- a field with an invalid value fails that entity only; the entity is dropped
  from its collection and a DecodeError is recorded
- values are type-checked strictly against JSON types: `"80"` is not a number
  and `"yes"` is not a boolean
- identifiers missing from legacy data are generated at decode time

FIELD_DEFAULTS is the only place where decode defaults are declared. Values
that are callables (uuid4, datetime.now, list, set) are called per entity.

Encoding writes every field, enums as their string tags.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from fitai.errors import DecodeError, DocumentDecodeError
from fitai.schemas import (
    AppData,
    ChatMessage,
    Exercise,
    ExerciseImprovement,
    ExerciseRecord,
    ExerciseWeightHistory,
    Meal,
    MealPlan,
    SessionLog,
    SetRecord,
    UserProfile,
    WaterIntake,
    WeekProgram,
    WeeklySummary,
    WeightEntry,
    Workout,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schemaVersion"


# ============================================================================
# Default table
# ============================================================================

FIELD_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "UserProfile": {
        "id": uuid4,
        "name": "",
        "age": 25,
        "weightKg": 70.0,
        "heightCm": 175.0,
        "sex": "male",
        "fitnessGoal": "muscle_gain",
        "equipment": "dumbbells",
        "sessionsPerWeek": 4,
        "language": "fr",
        "hasAcceptedDisclaimer": False,
        "notificationsEnabled": True,
        "reminderMinutesBefore": 30,
        "preferredWorkoutHour": 18,
        "preferredWorkoutMinute": 0,
        "preferredWorkoutDays": set,
        "createdAt": datetime.now,
        "currentWeek": 1,
        "dietaryRegime": "standard",
        "foodAllergies": set,
        "foodDislikes": set,
    },
    "Exercise": {
        "id": uuid4,
        "muscleGroups": list,
        "tempo": None,
        "notesKey": None,
        "restSeconds": 90,
    },
    "Workout": {
        "id": uuid4,
        "scheduledDate": None,
        "isCompleted": False,
        "isChallenge": False,
    },
    "WeekProgram": {
        "id": uuid4,
        "workouts": list,
        "generatedAt": datetime.now,
    },
    "SetRecord": {
        "id": uuid4,
        "isCompleted": False,
    },
    "ExerciseRecord": {
        "id": uuid4,
        "setsCompleted": list,
    },
    "SessionLog": {
        "id": uuid4,
        "notes": "",
        "exerciseRecords": list,
        "durationMinutes": None,
        "rating": None,
        "difficulty": None,
    },
    "WeightEntry": {
        "id": uuid4,
        "notes": "",
    },
    "WaterIntake": {
        "id": uuid4,
        "glasses": 0,
        "targetGlasses": 8,
    },
    "Meal": {
        "id": uuid4,
        "ingredients": list,
        "instructions": None,
    },
    "MealPlan": {
        "id": uuid4,
        "snacks": list,
    },
    "ChatMessage": {
        "id": uuid4,
        "timestamp": datetime.now,
    },
    "ExerciseWeightHistory": {
        "lastUpdated": datetime.now,
    },
    "ExerciseImprovement": {},
    "WeeklySummary": {
        "sessionsCompleted": 0,
        "sessionsPlanned": 0,
        "totalTrainingMinutes": 0,
        "weightChange": None,
        "startWeight": None,
        "endWeight": None,
        "averageRating": None,
        "bestExercises": list,
        "averageCalories": None,
        "averageProtein": None,
        "averageCarbs": None,
        "averageFats": None,
        "averageWaterGlasses": None,
        "currentStreak": 0,
        "aiRecommendations": None,
        "generatedAt": None,
    },
}

ENTITY_MODELS: Dict[str, Type[BaseModel]] = {
    "UserProfile": UserProfile,
    "Exercise": Exercise,
    "Workout": Workout,
    "WeekProgram": WeekProgram,
    "SetRecord": SetRecord,
    "ExerciseRecord": ExerciseRecord,
    "SessionLog": SessionLog,
    "WeightEntry": WeightEntry,
    "WaterIntake": WaterIntake,
    "Meal": Meal,
    "MealPlan": MealPlan,
    "ChatMessage": ChatMessage,
    "ExerciseWeightHistory": ExerciseWeightHistory,
    "ExerciseImprovement": ExerciseImprovement,
    "WeeklySummary": WeeklySummary,
}

# Nested entities per parent: wire field -> (entity, is_list)
NESTED_ENTITIES: Dict[str, Dict[str, Tuple[str, bool]]] = {
    "Workout": {"exercises": ("Exercise", True)},
    "WeekProgram": {"workouts": ("Workout", True)},
    "ExerciseRecord": {"setsCompleted": ("SetRecord", True)},
    "SessionLog": {"exerciseRecords": ("ExerciseRecord", True)},
    "MealPlan": {
        "breakfast": ("Meal", False),
        "lunch": ("Meal", False),
        "dinner": ("Meal", False),
        "snacks": ("Meal", True),
    },
    "WeeklySummary": {"bestExercises": ("ExerciseImprovement", True)},
}

ROOT_COLLECTIONS: Dict[str, str] = {
    "weekPrograms": "WeekProgram",
    "sessionLogs": "SessionLog",
    "weightEntries": "WeightEntry",
    "mealPlans": "MealPlan",
    "waterIntakes": "WaterIntake",
    "chatHistory": "ChatMessage",
    "exerciseWeightHistory": "ExerciseWeightHistory",
    "weeklySummaries": "WeeklySummary",
}

_optional_datetime = TypeAdapter(Optional[datetime])


# ============================================================================
# Decode report
# ============================================================================

class DecodeReport(BaseModel):
    """Result of decoding a document: the graph plus per-entity failures."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: AppData = Field(..., description="Decoded aggregate, defaults applied")
    errors: List[DecodeError] = Field(
        default_factory=list, description="Entities dropped during decode"
    )
    schema_version: int = Field(
        default=0, description="Version stamped in the document (0 if absent)"
    )

    @property
    def ok(self) -> bool:
        return not self.errors


class _ErrorSink:
    """Collects decode errors, or raises on the first one in strict mode."""

    def __init__(self, strict: bool):
        self.strict = strict
        self.errors: List[DecodeError] = []

    def add(self, error: DecodeError) -> None:
        if self.strict:
            raise DocumentDecodeError(str(error), [error])
        logger.debug("Decode error: %s", error)
        self.errors.append(error)


# ============================================================================
# Entity builders
# ============================================================================

def _default_for(entity: str, wire_name: str) -> Any:
    default = FIELD_DEFAULTS[entity][wire_name]
    return default() if callable(default) else default


def _decode_entity(entity: str, raw: Any, path: str, sink: _ErrorSink) -> Optional[BaseModel]:
    """Build one entity from its raw mapping, or record why it cannot be built."""
    if not isinstance(raw, dict):
        sink.add(DecodeError(entity, None, f"expected object, got {type(raw).__name__}", path=path))
        return None

    model = ENTITY_MODELS[entity]
    defaults = FIELD_DEFAULTS[entity]
    nested = NESTED_ENTITIES.get(entity, {})
    values: Dict[str, Any] = {}

    for field_name, info in model.model_fields.items():
        wire = info.alias or field_name
        value = raw.get(wire)

        if value is None:
            if wire in defaults:
                values[wire] = to_jsonable_python(_default_for(entity, wire))
                continue
            sink.add(DecodeError(entity, wire, "missing required field", path=path))
            return None

        if wire in nested:
            child_entity, is_list = nested[wire]
            child_path = f"{path}.{wire}"
            if is_list:
                if not isinstance(value, list):
                    sink.add(DecodeError(
                        entity, wire, f"expected array, got {type(value).__name__}", path=path
                    ))
                    return None
                values[wire] = [
                    child.model_dump(mode="json", by_alias=True)
                    for child in _decode_list(child_entity, value, child_path, sink)
                ]
            else:
                child = _decode_entity(child_entity, value, child_path, sink)
                if child is None:
                    sink.add(DecodeError(entity, wire, f"invalid {child_entity}", path=path))
                    return None
                values[wire] = child.model_dump(mode="json", by_alias=True)
            continue

        values[wire] = value

    try:
        return model.model_validate_json(json.dumps(values), strict=True)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        sink.add(DecodeError(entity, field, first.get("msg", "invalid value"), path=path))
        return None


def _decode_list(entity: str, items: List[Any], path: str, sink: _ErrorSink) -> List[BaseModel]:
    """Decode each item independently; failing or duplicate items are dropped."""
    decoded = []
    seen_ids = set()
    for index, item in enumerate(items):
        item_path = f"{path}[{index}]"
        built = _decode_entity(entity, item, item_path, sink)
        if built is None:
            continue
        entity_id = getattr(built, "id", None)
        if entity_id is not None:
            if entity_id in seen_ids:
                sink.add(DecodeError(entity, "id", f"duplicate identifier {entity_id}", path=item_path))
                continue
            seen_ids.add(entity_id)
        decoded.append(built)
    return decoded


def _order_week_programs(programs: List[WeekProgram], sink: _ErrorSink) -> List[WeekProgram]:
    ordered = []
    seen_weeks = set()
    for program in sorted(programs, key=lambda p: p.week_index):
        if program.week_index in seen_weeks:
            sink.add(DecodeError(
                "WeekProgram",
                "weekIndex",
                f"duplicate week index {program.week_index}",
                path="weekPrograms",
            ))
            continue
        seen_weeks.add(program.week_index)
        ordered.append(program)
    return ordered


def _dedupe_weight_history(
    history: List[ExerciseWeightHistory], sink: _ErrorSink
) -> List[ExerciseWeightHistory]:
    kept = []
    seen_keys = set()
    for entry in history:
        if entry.exercise_name_key in seen_keys:
            sink.add(DecodeError(
                "ExerciseWeightHistory",
                "exerciseNameKey",
                f"duplicate exercise {entry.exercise_name_key}",
                path="exerciseWeightHistory",
            ))
            continue
        seen_keys.add(entry.exercise_name_key)
        kept.append(entry)
    return kept


# ============================================================================
# Public API
# ============================================================================

def decode_app_data(raw: Any, strict: bool = False) -> DecodeReport:
    """
    Decode a raw document (parsed JSON) into an AppData graph.

    Args:
        raw: Parsed document, expected to be a JSON object
        strict: Raise DocumentDecodeError on the first entity failure instead
            of dropping the entity

    Returns:
        DecodeReport with the decoded data and any per-entity errors

    Raises:
        DocumentDecodeError: If the root is not an object, or strict decode fails
    """
    if not isinstance(raw, dict):
        error = DecodeError("AppData", None, f"expected object, got {type(raw).__name__}")
        raise DocumentDecodeError(f"Document root must be an object: {error}", [error])

    sink = _ErrorSink(strict)

    version = raw.get(SCHEMA_VERSION_KEY) or 0
    if not isinstance(version, int):
        sink.add(DecodeError("AppData", SCHEMA_VERSION_KEY, "expected integer"))
        version = 0
    if version > SCHEMA_VERSION:
        logger.warning(
            "Document schema version %s is newer than supported version %s; "
            "unknown fields will be ignored",
            version,
            SCHEMA_VERSION,
        )

    profile = None
    if raw.get("profile") is not None:
        profile = _decode_entity("UserProfile", raw["profile"], "profile", sink)

    collections: Dict[str, List[BaseModel]] = {}
    for wire, entity in ROOT_COLLECTIONS.items():
        items = raw.get(wire)
        if items is None:
            collections[wire] = []
        elif not isinstance(items, list):
            sink.add(DecodeError("AppData", wire, f"expected array, got {type(items).__name__}"))
            collections[wire] = []
        else:
            collections[wire] = _decode_list(entity, items, wire, sink)

    collections["weekPrograms"] = _order_week_programs(collections["weekPrograms"], sink)
    collections["exerciseWeightHistory"] = _dedupe_weight_history(
        collections["exerciseWeightHistory"], sink
    )

    last_sync_date = None
    try:
        last_sync_date = _optional_datetime.validate_json(
            json.dumps(raw.get("lastSyncDate")), strict=True
        )
    except PydanticValidationError as exc:
        sink.add(DecodeError("AppData", "lastSyncDate", exc.errors()[0].get("msg", "invalid value")))

    data = AppData(
        profile=profile,
        week_programs=collections["weekPrograms"],
        session_logs=collections["sessionLogs"],
        weight_entries=collections["weightEntries"],
        meal_plans=collections["mealPlans"],
        water_intakes=collections["waterIntakes"],
        chat_history=collections["chatHistory"],
        exercise_weight_history=collections["exerciseWeightHistory"],
        weekly_summaries=collections["weeklySummaries"],
        last_sync_date=last_sync_date,
    )

    if sink.errors:
        logger.warning("Decoded document with %d dropped entities", len(sink.errors))

    return DecodeReport(data=data, errors=sink.errors, schema_version=version)


def encode_app_data(data: AppData) -> Dict[str, Any]:
    """
    Encode an AppData graph into a JSON-compatible document.

    Every field is written, including nulls; enums use their string tags.
    """
    document = data.model_dump(mode="json", by_alias=True)
    document[SCHEMA_VERSION_KEY] = SCHEMA_VERSION
    return document


def dumps(data: AppData) -> bytes:
    """Serialize AppData to UTF-8 JSON bytes."""
    return json.dumps(encode_app_data(data), indent=2, ensure_ascii=False).encode("utf-8")


def loads(payload: bytes, strict: bool = False) -> DecodeReport:
    """
    Parse UTF-8 JSON bytes and decode them.

    Raises:
        DocumentDecodeError: If the payload is not valid JSON or not an object
    """
    try:
        raw = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DocumentDecodeError(f"Invalid document JSON: {e}")
    return decode_app_data(raw, strict=strict)
