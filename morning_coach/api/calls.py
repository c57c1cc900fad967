"""Call history API endpoints."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from morning_coach.core.dependencies import get_call_log
from morning_coach.services.persistence.logs import CallLogService

router = APIRouter()
logger = logging.getLogger(__name__)


class SessionLogResponse(BaseModel):
    """Finished session response model."""
    id: int
    call_sid: str
    session_type: str
    state: str
    started_at: str
    ended_at: Optional[str] = None
    decisions: List[str] = []
    exchange_count: int = 0
    insights: Optional[Dict[str, Any]] = None


class MissedCallResponse(BaseModel):
    """Missed call response model."""
    id: int
    call_sid: str
    phone_number: Optional[str] = None
    reason: str
    created_at: str


@router.get("/api/sessions/history", response_model=List[SessionLogResponse])
async def get_session_history(
    request: Request,
    limit: int = 50,
    call_log: CallLogService = Depends(get_call_log),
):
    """Get recently finished sessions with their insights."""
    logger.info(
        f"[SESSION HISTORY] Request received - limit: {limit}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        sessions = await call_log.get_recent_sessions(limit)
    except Exception as e:
        logger.error(
            f"[SESSION HISTORY] Error fetching sessions - limit: {limit}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error fetching session history: {str(e)}")

    return [
        SessionLogResponse(
            id=record.id,
            call_sid=record.call_sid,
            session_type=record.session_type,
            state=record.state,
            started_at=record.started_at.isoformat() if record.started_at else "",
            ended_at=record.ended_at.isoformat() if record.ended_at else None,
            decisions=record.decisions or [],
            exchange_count=len(record.exchanges or []),
            insights=record.insights,
        )
        for record in sessions
    ]


@router.get("/api/missed-calls", response_model=List[MissedCallResponse])
async def get_missed_calls(
    limit: int = 50,
    call_log: CallLogService = Depends(get_call_log),
):
    """Get recent missed calls, including voicemail pickups."""
    try:
        missed = await call_log.get_recent_missed_calls(limit)
    except Exception as e:
        logger.error(f"[MISSED CALLS] Error fetching missed calls: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching missed calls: {str(e)}")

    return [
        MissedCallResponse(
            id=record.id,
            call_sid=record.call_sid,
            phone_number=record.phone_number,
            reason=record.reason,
            created_at=record.created_at.isoformat() if record.created_at else "",
        )
        for record in missed
    ]
