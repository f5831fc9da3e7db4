"""
Per-exercise load progression.

After a session is logged, the weight used for each exercise and the user's
difficulty feedback determine the suggested weight for the next session:

    suggested_weight_kg = last_weight_kg * progression_multiplier(feedback)

History is keyed by exercise name key, not exercise id, so it survives
program regeneration.
"""

import logging
from typing import Dict, List, Optional

from fitai.schemas import (
    Equipment,
    ExerciseWeightHistory,
    SessionDifficulty,
    SessionLog,
)

logger = logging.getLogger(__name__)

# Starting weights (kg per dumbbell) when an exercise has no history yet
DEFAULT_STARTING_WEIGHTS: Dict[str, float] = {
    # Chest
    "ex_dumbbell_bench_press": 10.0,
    "ex_dumbbell_flyes": 6.0,
    "ex_incline_dumbbell_press": 8.0,
    "ex_dumbbell_pullover": 8.0,
    # Back
    "ex_dumbbell_rows": 10.0,
    "ex_single_arm_row": 10.0,
    "ex_renegade_rows": 6.0,
    "ex_dumbbell_deadlift": 12.0,
    # Shoulders
    "ex_dumbbell_shoulder_press": 8.0,
    "ex_lateral_raises": 4.0,
    "ex_front_raises": 4.0,
    "ex_rear_delt_flyes": 4.0,
    "ex_dumbbell_shrugs": 10.0,
    # Arms
    "ex_bicep_curls": 6.0,
    "ex_hammer_curls": 6.0,
    "ex_concentration_curls": 6.0,
    "ex_tricep_kickbacks": 4.0,
    "ex_tricep_extensions": 6.0,
    # Legs
    "ex_goblet_squats": 12.0,
    "ex_lunges": 8.0,
    "ex_bulgarian_split_squats": 8.0,
    "ex_dumbbell_rdl": 10.0,
    "ex_calf_raises": 10.0,
    "ex_step_ups": 8.0,
    # Glutes
    "ex_glute_bridges": 10.0,
    "ex_hip_thrusts": 12.0,
    # Core
    "ex_russian_twists": 4.0,
}
FALLBACK_STARTING_WEIGHT = 5.0


def suggest_weight(
    last_weight_kg: float, feedback: Optional[SessionDifficulty]
) -> Optional[float]:
    """
    Suggest the next working weight from the last one and session feedback.

    Args:
        last_weight_kg: Weight used in the session
        feedback: Difficulty reported by the user, if any

    Returns:
        Suggested weight rounded to 0.01 kg, or None when no feedback was given
    """
    if feedback is None:
        return None
    return round(last_weight_kg * feedback.progression_multiplier, 2)


def find_history(
    history: List[ExerciseWeightHistory], exercise_name_key: str
) -> Optional[ExerciseWeightHistory]:
    for entry in history:
        if entry.exercise_name_key == exercise_name_key:
            return entry
    return None


def apply_session(history: List[ExerciseWeightHistory], log: SessionLog) -> List[str]:
    """
    Update exercise weight history in place from a logged session.

    Each exercise record contributes its heaviest set. Records without any
    weight (bodyweight work) are skipped. Without difficulty feedback the
    history is left untouched.

    Args:
        history: The aggregate's exercise weight history (mutated)
        log: The newly logged session

    Returns:
        Name keys of the exercises whose history was updated
    """
    if log.difficulty is None:
        logger.debug("Session %s has no difficulty feedback; history unchanged", log.id)
        return []

    updated = []
    for record in log.exercise_records:
        max_weight = record.max_weight()
        if max_weight <= 0:
            continue

        suggested = suggest_weight(max_weight, log.difficulty)
        entry = find_history(history, record.exercise_name_key)
        if entry is None:
            history.append(
                ExerciseWeightHistory(
                    exercise_name_key=record.exercise_name_key,
                    last_weight_kg=max_weight,
                    suggested_weight_kg=suggested,
                    last_updated=log.date,
                )
            )
        else:
            entry.last_weight_kg = max_weight
            entry.suggested_weight_kg = suggested
            entry.last_updated = log.date
        updated.append(record.exercise_name_key)

    if updated:
        logger.info(
            "Updated weight history for %d exercises (%s feedback)",
            len(updated),
            log.difficulty.value,
        )
    return updated


def default_weight(
    exercise_name_key: str,
    equipment: Equipment,
    history: List[ExerciseWeightHistory],
) -> float:
    """
    Weight to prefill for an exercise.

    Uses the suggested weight from history when available, 0 for bodyweight
    exercises, otherwise a starting weight for common dumbbell exercises.
    """
    entry = find_history(history, exercise_name_key)
    if entry is not None:
        return entry.suggested_weight_kg
    if equipment == Equipment.NONE:
        return 0.0
    return DEFAULT_STARTING_WEIGHTS.get(exercise_name_key, FALLBACK_STARTING_WEIGHT)
