"""Twilio voice webhook endpoints."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import Response

from morning_coach.core.config import settings
from morning_coach.core.dependencies import (
    get_agent_service,
    get_call_log,
    get_context_store,
    get_day_plan_service,
    get_session_store,
    get_tool_dispatcher,
)
from morning_coach.services.agent.agent import AgentService
from morning_coach.services.agent.constants import (
    FALLBACK_OPENER,
    FALLBACK_REPLY,
    TERMINAL_CALL_STATUSES,
    TURN_FINAL_LINE,
)
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.manager import CallSessionManager
from morning_coach.services.call_session.store import SessionStore
from morning_coach.services.call_session.turn_processor import TurnProcessor
from morning_coach.services.persistence.logs import CallLogService
from morning_coach.services.plan.day_plan import DayPlanService
from morning_coach.services.speech.twiml import ResponseDirective, TwiMLRenderer
from morning_coach.services.tools.dispatcher import ToolDispatcher

router = APIRouter()
logger = logging.getLogger(__name__)


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL if set (e.g. behind a tunnel or proxy), otherwise
    constructs it from the request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def get_gather_url(request: Request, call_sid: str) -> str:
    return f"{get_base_url(request)}/webhooks/voice/gather?CallSid={call_sid}"


def twiml_response(directive: ResponseDirective, request: Request, call_sid: str) -> Response:
    twiml = TwiMLRenderer().render(directive, get_gather_url(request, call_sid))
    return Response(content=twiml, media_type="application/xml")


def get_session_manager(
    session_store: SessionStore = Depends(get_session_store),
    context_store: ContextStore = Depends(get_context_store),
    call_log: CallLogService = Depends(get_call_log),
    day_plan_service: DayPlanService = Depends(get_day_plan_service),
) -> CallSessionManager:
    """Get call lifecycle manager."""
    return CallSessionManager(session_store, context_store, call_log, day_plan_service)


def get_turn_processor(
    session_store: SessionStore = Depends(get_session_store),
    context_store: ContextStore = Depends(get_context_store),
    call_log: CallLogService = Depends(get_call_log),
    session_manager: CallSessionManager = Depends(get_session_manager),
    agent_service: AgentService = Depends(get_agent_service),
    tool_dispatcher: ToolDispatcher = Depends(get_tool_dispatcher),
) -> TurnProcessor:
    """Get turn processor."""
    return TurnProcessor(
        session_store, context_store, session_manager, agent_service, tool_dispatcher, call_log
    )


@router.post("/voice/incoming")
async def handle_incoming_call(
    request: Request,
    CallSid: str = Form(...),
    CallStatus: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_session_manager),
):
    """
    Handle an answered call from Twilio.

    Starts the session and speaks the opener. Terminal statuses delivered
    here only clean up.
    """
    logger.info(
        f"[INCOMING CALL] Received call webhook - CallSid: {CallSid}, CallStatus: {CallStatus}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    if CallStatus in TERMINAL_CALL_STATUSES:
        await session_manager.handle_status(CallSid, CallStatus, To)
        return Response(content="", status_code=200)

    try:
        directive = await session_manager.start_call(CallSid)
        logger.info(f"[INCOMING CALL] Session started - CallSid: {CallSid}")
    except Exception as e:
        logger.error(
            f"[INCOMING CALL] Error starting session - CallSid: {CallSid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        directive = ResponseDirective.listen(FALLBACK_OPENER, final_line=TURN_FINAL_LINE)

    return twiml_response(directive, request, CallSid)


@router.post("/voice/gather")
async def handle_gather(
    request: Request,
    CallSid: str = Query(...),
    SpeechResult: str = Form(None),
    CallStatus: Optional[str] = Form(None),
    To: Optional[str] = Form(None),
    turn_processor: TurnProcessor = Depends(get_turn_processor),
):
    """
    Handle gathered speech from Twilio.

    This endpoint is called after Twilio collects user speech.
    """
    logger.info(
        f"[GATHER] Received speech input - CallSid: {CallSid}, "
        f"SpeechResult length: {len(SpeechResult) if SpeechResult else 0}, CallStatus: {CallStatus}"
    )

    try:
        directive = await turn_processor.process(
            CallSid, SpeechResult, call_status=CallStatus, phone_number=To
        )
    except Exception as e:
        logger.error(
            f"[GATHER] Error processing speech input - CallSid: {CallSid}, "
            f"SpeechResult: '{SpeechResult[:100] if SpeechResult else 'None'}', "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        directive = ResponseDirective.listen(FALLBACK_REPLY)

    if directive is None:
        # Call already over; just acknowledge
        return Response(content="", status_code=200)
    return twiml_response(directive, request, CallSid)


@router.post("/voice/status")
async def handle_call_status(
    request: Request,
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    To: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_session_manager),
):
    """
    Handle call status updates from Twilio.

    This endpoint is called when call status changes (completed, failed, etc.).
    """
    logger.info(
        f"[CALL STATUS] Received status update - CallSid: {CallSid}, CallStatus: {CallStatus}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        await session_manager.handle_status(CallSid, CallStatus, To)
    except Exception as e:
        logger.error(
            f"[CALL STATUS] Error handling call status update - CallSid: {CallSid}, "
            f"CallStatus: {CallStatus}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
    # Always OK so Twilio does not retry
    return Response(content="OK", media_type="text/plain")
