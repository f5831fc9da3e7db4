"""
Summary API Routes

Weekly summaries and daily nutrition targets.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitai.api.dependencies import get_store
from fitai.nutrition import NutritionCalculator, NutritionTargets
from fitai.schemas import WeeklySummary
from fitai.store import AppDataStore

router = APIRouter()


@router.get("/summary/{week}", response_model=WeeklySummary)
def get_weekly_summary(
    week: int,
    save: bool = Query(False, description="Cache the computed summary in the document"),
    store: AppDataStore = Depends(get_store),
) -> WeeklySummary:
    """
    Compute the summary of one program week.

    Args:
        week: Program week index
        save: Cache the result and persist the document

    Returns:
        WeeklySummary; weeks without a program yield an empty summary

    Raises:
        HTTPException: If the week index is negative
    """
    if week < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Week index must be >= 0, got {week}",
        )

    summary = store.weekly_summary(week)
    if save:
        with store.transaction():
            store.save_weekly_summary(summary)
            store.save()
    return summary


@router.get("/targets", response_model=NutritionTargets)
def get_nutrition_targets(store: AppDataStore = Depends(get_store)) -> NutritionTargets:
    """
    Daily caloric and macro targets for the stored profile.

    Raises:
        HTTPException: If no profile exists yet
    """
    profile = store.profile
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No profile stored",
        )
    return NutritionCalculator().calculate_targets(profile)
