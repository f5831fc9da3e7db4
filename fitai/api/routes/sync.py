"""
Sync API Routes

Recording when the document was last synchronized.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from fitai.api.dependencies import get_store
from fitai.api.models.requests import SyncRequest
from fitai.api.models.responses import SyncResponse
from fitai.store import AppDataStore

router = APIRouter()


@router.put("/sync", response_model=SyncResponse)
def record_sync(
    request: SyncRequest, store: AppDataStore = Depends(get_store)
) -> SyncResponse:
    """Stamp the document with the sync time and persist it."""
    synced_at = request.last_sync_date or datetime.now()
    with store.transaction():
        store.last_sync_date = synced_at
        store.save()
    return SyncResponse(last_sync_date=synced_at)
