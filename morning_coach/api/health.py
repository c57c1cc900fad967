"""Health and status endpoints."""
import logging
from fastapi import APIRouter, Depends, Request

from morning_coach.core.dependencies import get_session_store
from morning_coach.services.call_session.store import SessionStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {"status": "healthy"}


@router.get("/status")
async def status(session_store: SessionStore = Depends(get_session_store)):
    """Live sessions currently held in memory."""
    active = session_store.active_call_sids()
    return {"status": "running", "active_sessions": len(active), "call_sids": active}
