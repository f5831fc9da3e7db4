"""
Progression API Routes

Suggested working weights per exercise.
"""

from fastapi import APIRouter, Depends, Query

from fitai.api.dependencies import get_store
from fitai.api.models.responses import ProgressionResponse
from fitai.schemas import Equipment
from fitai.store import AppDataStore

router = APIRouter()


@router.get("/progression/{exercise_name_key}", response_model=ProgressionResponse)
def get_progression(
    exercise_name_key: str,
    equipment: Equipment = Query(Equipment.DUMBBELLS, description="Equipment used"),
    store: AppDataStore = Depends(get_store),
) -> ProgressionResponse:
    """
    Last, suggested and prefill weight for an exercise.

    Exercises without history report no last/suggested weight and a
    starting weight as the prefill.
    """
    return ProgressionResponse(
        exercise_name_key=exercise_name_key,
        last_weight_kg=store.last_weight(exercise_name_key),
        suggested_weight_kg=store.suggested_weight(exercise_name_key),
        default_weight_kg=store.default_weight(exercise_name_key, equipment),
    )
