"""
Weight API Routes

Recording body weight measurements.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status

from fitai.api.dependencies import get_store
from fitai.api.models.requests import WeightEntryRequest
from fitai.api.models.responses import WeightRecordedResponse
from fitai.schemas import WeightEntry
from fitai.store import AppDataStore

router = APIRouter()


@router.post(
    "/weights",
    response_model=WeightRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_weight(
    request: WeightEntryRequest, store: AppDataStore = Depends(get_store)
) -> WeightRecordedResponse:
    """Store a weight entry; the profile weight follows the latest entry."""
    entry = WeightEntry(
        date=request.date or datetime.now(),
        weight_kg=request.weight_kg,
        notes=request.notes,
    )
    with store.transaction():
        store.add_weight_entry(entry)
        store.save()

    return WeightRecordedResponse(entry_id=entry.id, latest_weight_kg=store.latest_weight())
