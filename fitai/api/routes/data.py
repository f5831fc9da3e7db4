"""
Data API Routes

Read-only access to the stored document.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from fitai import codec
from fitai.api.dependencies import get_store
from fitai.api.models.responses import DecodeErrorInfo
from fitai.store import AppDataStore

router = APIRouter()


@router.get("/data")
def get_data(store: AppDataStore = Depends(get_store)) -> Dict[str, Any]:
    """
    Snapshot of the whole aggregate, encoded exactly as it is persisted.

    Returns:
        The camelCase document, including its schema version
    """
    return codec.encode_app_data(store.snapshot())


@router.get("/data/errors", response_model=List[DecodeErrorInfo])
def get_decode_errors(store: AppDataStore = Depends(get_store)) -> List[DecodeErrorInfo]:
    """Entities dropped when the document was last loaded."""
    return [DecodeErrorInfo.from_error(error) for error in store.last_decode_errors]
