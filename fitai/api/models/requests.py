"""
API Request Models

Pydantic models for API request validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from fitai.schemas import FitAIModel


class WeightEntryRequest(FitAIModel):
    """Request model for recording a body weight measurement."""

    weight_kg: float = Field(..., ge=0.0, description="Body weight in kg")
    date: Optional[datetime] = Field(None, description="Measurement time (default: now)")
    notes: str = Field("", description="Free-form notes")


class SyncRequest(FitAIModel):
    """Request model for recording a completed sync."""

    last_sync_date: Optional[datetime] = Field(
        None, description="Time of the sync (default: now)"
    )
