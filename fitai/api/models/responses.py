"""
API Response Models

Pydantic models for API responses. Field names are camelCase on the wire,
like the stored document.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from fitai.errors import DecodeError
from fitai.schemas import FitAIModel


class DecodeErrorInfo(FitAIModel):
    """One entity dropped while loading the stored document."""

    entity: str = Field(..., description="Entity type name")
    field: Optional[str] = Field(None, description="Wire field that failed")
    reason: str = Field(..., description="Why decoding failed")
    path: str = Field("", description="Location in the document")

    @classmethod
    def from_error(cls, error: DecodeError) -> "DecodeErrorInfo":
        return cls(entity=error.entity, field=error.field, reason=error.reason, path=error.path)


class SessionLoggedResponse(FitAIModel):
    """Response for POST /api/sessions."""

    session_id: UUID = Field(..., description="Identifier of the stored log")
    workout_id: UUID = Field(..., description="Workout marked completed")
    updated_exercises: List[str] = Field(
        default_factory=list, description="Exercise name keys with a new suggested weight"
    )


class ProgressionResponse(FitAIModel):
    """Response for GET /api/progression/{exercise_name_key}."""

    exercise_name_key: str = Field(..., description="Exercise name key")
    last_weight_kg: Optional[float] = Field(None, description="Weight used last time")
    suggested_weight_kg: Optional[float] = Field(
        None, description="Suggested weight from the last feedback"
    )
    default_weight_kg: float = Field(..., description="Weight to prefill for the next session")


class WeightRecordedResponse(FitAIModel):
    """Response for POST /api/weights."""

    entry_id: UUID = Field(..., description="Identifier of the stored entry")
    latest_weight_kg: Optional[float] = Field(None, description="Most recent body weight")


class SyncResponse(FitAIModel):
    """Response for PUT /api/sync."""

    last_sync_date: datetime = Field(..., description="Recorded sync time")


class ErrorResponse(FitAIModel):
    """Error payload returned by the exception handlers."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable message")
