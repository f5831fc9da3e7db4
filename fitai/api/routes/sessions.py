"""
Session API Routes

Logging completed workouts.
"""

import logging

from fastapi import APIRouter, Depends, status

from fitai.api.dependencies import get_store
from fitai.api.models.responses import SessionLoggedResponse
from fitai.schemas import SessionLog
from fitai.store import AppDataStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sessions",
    response_model=SessionLoggedResponse,
    status_code=status.HTTP_201_CREATED,
)
def log_session(
    log: SessionLog, store: AppDataStore = Depends(get_store)
) -> SessionLoggedResponse:
    """
    Store a session log and persist the document.

    The referenced workout is marked completed and exercise weight history
    is updated from the difficulty feedback. Nothing is kept if saving fails.

    Args:
        log: The session log (camelCase fields)

    Returns:
        SessionLoggedResponse with the exercises whose suggestion changed
    """
    with store.transaction():
        updated = store.add_session_log(log)
        store.save()

    logger.info("Logged session %s for workout %s", log.id, log.workout_id)
    return SessionLoggedResponse(
        session_id=log.id,
        workout_id=log.workout_id,
        updated_exercises=updated,
    )
