"""Call lifecycle: session creation at call start, teardown on terminal status."""
import logging
from typing import Optional

from morning_coach.services.agent.constants import (
    FALLBACK_OPENER,
    MISSED_CALL_STATUSES,
    OPENER_FINAL_LINE,
    OPENER_REPROMPT,
    TERMINAL_CALL_STATUSES,
)
from morning_coach.services.agent.insights import InsightSummary
from morning_coach.services.agent.prompt import generate_opener, summarize_plan
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.models import DayPlan, Session, SessionState
from morning_coach.services.call_session.store import SessionStore
from morning_coach.services.persistence.logs import CallLogService
from morning_coach.services.plan.day_plan import DayPlanService
from morning_coach.services.speech.twiml import ResponseDirective

logger = logging.getLogger(__name__)


class CallSessionManager:
    """Creates sessions when calls start and finalizes them exactly once."""

    def __init__(
        self,
        session_store: SessionStore,
        context_store: ContextStore,
        call_log: CallLogService,
        day_plan_service: DayPlanService,
    ):
        self.session_store = session_store
        self.context_store = context_store
        self.call_log = call_log
        self.day_plan_service = day_plan_service

    async def start_call(self, call_sid: str) -> ResponseDirective:
        """
        Start a coaching session for a newly answered call.

        Loads the day plan once, seeds the conversation with the opener and
        returns the opener with an escalating no-response sequence.
        """
        await self.session_store.create(call_sid)

        try:
            plan = await self.day_plan_service.get_today_plan()
        except Exception as e:
            logger.error(
                f"[LIFECYCLE] Day plan unavailable, starting without it - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            plan = DayPlan()

        try:
            opener = generate_opener(plan)
        except Exception as e:
            logger.error(f"[LIFECYCLE] Opener generation failed - CallSid: {call_sid}, Error: {e}", exc_info=True)
            opener = FALLBACK_OPENER

        await self.session_store.set_plan(call_sid, plan, summarize_plan(plan))
        await self.context_store.reset(call_sid, opener)
        await self.session_store.record_exchange(
            call_sid,
            "SESSION_START",
            opener,
            {"task_count": len(plan.habits), "event_count": len(plan.events)},
        )
        await self.session_store.set_state(call_sid, SessionState.OVERVIEW)

        logger.info(f"[LIFECYCLE] Session initialized - CallSid: {call_sid}, Opener: '{opener}'")
        return ResponseDirective.listen(
            opener,
            fallback_prompts=[OPENER_REPROMPT],
            final_line=OPENER_FINAL_LINE,
        )

    async def finalize(
        self, call_sid: str, insights: Optional[InsightSummary] = None
    ) -> Optional[Session]:
        """
        End a session, clear its context and write the session record.

        Safe to call repeatedly: only the first call for a session writes to
        the call log.
        """
        session, newly_ended = await self.session_store.end(call_sid)
        await self.context_store.clear(call_sid)

        if newly_ended and session is not None:
            await self.call_log.log_session(session, insights)
        elif session is not None:
            logger.info(f"[LIFECYCLE] Session already finalized - CallSid: {call_sid}, State: {session.state}")
        else:
            logger.debug(f"[LIFECYCLE] No session to finalize - CallSid: {call_sid}")
        return session

    async def handle_status(
        self, call_sid: str, call_status: str, phone_number: Optional[str] = None
    ) -> Optional[Session]:
        """React to a call-status callback from the gateway."""
        if call_status in MISSED_CALL_STATUSES:
            await self.call_log.log_missed_call(call_sid, call_status, phone_number)

        if call_status in TERMINAL_CALL_STATUSES:
            logger.info(f"[LIFECYCLE] Terminal status '{call_status}', finalizing - CallSid: {call_sid}")
            return await self.finalize(call_sid)

        logger.debug(f"[LIFECYCLE] Status '{call_status}' needs no action - CallSid: {call_sid}")
        return None
