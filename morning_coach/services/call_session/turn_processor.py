"""Turn processing: the main control loop for one inbound utterance."""
import logging
from typing import Optional

from morning_coach.services.agent.agent import AgentService, ReplyGenerationError
from morning_coach.services.agent.classifier import (
    is_commitment,
    is_end_intent,
    is_voicemail,
    needs_tool,
)
from morning_coach.services.agent.constants import (
    FALLBACK_CLOSING,
    FALLBACK_REPLY,
    NO_SPEECH_REPROMPT,
    TERMINAL_CALL_STATUSES,
    TURN_FINAL_LINE,
    TURN_REPROMPT,
    VOICEMAIL_CLOSING,
)
from morning_coach.services.agent.insights import extract_session_insights, get_ending_message
from morning_coach.services.agent.replies import FreeText, ToolRequest, ToolResult
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.manager import CallSessionManager
from morning_coach.services.call_session.models import SessionState, SessionType
from morning_coach.services.call_session.store import SessionStore
from morning_coach.services.persistence.logs import CallLogService
from morning_coach.services.speech.twiml import ResponseDirective
from morning_coach.services.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)


class TurnProcessor:
    """Classifies each utterance and routes it to voicemail, session end or a normal turn."""

    def __init__(
        self,
        session_store: SessionStore,
        context_store: ContextStore,
        lifecycle: CallSessionManager,
        agent_service: AgentService,
        tool_dispatcher: ToolDispatcher,
        call_log: CallLogService,
    ):
        self.session_store = session_store
        self.context_store = context_store
        self.lifecycle = lifecycle
        self.agent_service = agent_service
        self.tool_dispatcher = tool_dispatcher
        self.call_log = call_log

    async def process(
        self,
        call_sid: str,
        speech_result: Optional[str] = None,
        call_status: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> Optional[ResponseDirective]:
        """
        Process one inbound gateway event for a call.

        Args:
            call_sid: Gateway call identifier
            speech_result: Transcribed caller speech, if any
            call_status: Gateway call status sent with the event
            phone_number: Number that was called, for missed-call records

        Returns:
            ResponseDirective to send back, or None when the call is already over
        """
        if call_status in TERMINAL_CALL_STATUSES:
            logger.info(f"[TURN] Call {call_status} by gateway - CallSid: {call_sid}")
            await self.lifecycle.finalize(call_sid)
            return None

        if await self.session_store.is_ended(call_sid):
            logger.info(f"[TURN] Ignoring speech for a finished call - CallSid: {call_sid}")
            return None

        user_input = (speech_result or "").strip()
        logger.info(f"[TURN] User said: '{user_input}' - CallSid: {call_sid}")

        if not user_input:
            return ResponseDirective.listen(NO_SPEECH_REPROMPT)

        # Voicemail wording can also look like a closing phrase, so it goes first
        if is_voicemail(user_input):
            return await self.handle_voicemail(call_sid, phone_number)

        if is_end_intent(user_input):
            logger.info(f"[TURN] End intent detected - CallSid: {call_sid}")
            return await self.end_session(call_sid)

        try:
            return await self._handle_turn(call_sid, user_input)
        except Exception as e:
            logger.error(
                f"[TURN] Turn failed, using fallback reply - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return ResponseDirective.listen(FALLBACK_REPLY)

    async def handle_voicemail(self, call_sid: str, phone_number: Optional[str] = None) -> ResponseDirective:
        """Log the call as missed and hang up on the voicemail system."""
        try:
            session = await self.session_store.get(call_sid)
            if not session.is_terminal:
                await self.session_store.mark_voicemail(call_sid)
                await self.call_log.log_missed_call(call_sid, "voicemail-answered", phone_number)
            await self.lifecycle.finalize(call_sid)
        except Exception as e:
            logger.error(
                f"[TURN] Voicemail cleanup failed - CallSid: {call_sid}, Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
        return ResponseDirective.end_call(VOICEMAIL_CLOSING)

    async def end_session(self, call_sid: str) -> ResponseDirective:
        """
        Run the session-end procedure and hang up.

        Extracts insights, finalizes the session (idempotent), clears the
        context and closes with the top priority when there is one.
        """
        try:
            session = await self.session_store.get(call_sid)
            history = await self.context_store.get(call_sid)
            await self.session_store.set_state(call_sid, SessionState.ENDING)

            insights = extract_session_insights(history, session.decisions, session.plan)
            logger.info(f"[TURN] Session insights - CallSid: {call_sid}, Insights: {insights.model_dump()}")

            await self.lifecycle.finalize(call_sid, insights)
            return ResponseDirective.end_call(get_ending_message(insights))
        except Exception as e:
            logger.error(
                f"[TURN] Session end failed, hanging up anyway - CallSid: {call_sid}, "
                f"Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            try:
                await self.lifecycle.finalize(call_sid)
            except Exception:
                logger.error(f"[TURN] Finalize after failed session end also failed - CallSid: {call_sid}", exc_info=True)
            return ResponseDirective.end_call(FALLBACK_CLOSING)

    async def _handle_turn(self, call_sid: str, user_input: str) -> ResponseDirective:
        session = await self.session_store.get(call_sid)
        await self.session_store.set_session_type(call_sid, SessionType.CONVERSATION)
        await self.session_store.set_state(call_sid, SessionState.CONVERSATION)

        # The user entry is stored only together with a reply
        history = await self.context_store.get(call_sid)
        history.append({"role": "user", "content": user_input})

        tool_result: Optional[ToolResult] = None
        if needs_tool(user_input):
            logger.info(f"[TURN] Tool trigger matched - CallSid: {call_sid}")
            assistant_reply, tool_result = await self._tool_reply(history)
        else:
            assistant_reply = await self._conversational_reply(history, session.day_analysis)

        await self.context_store.append(call_sid, "user", user_input)
        await self.context_store.append(call_sid, "assistant", assistant_reply)

        await self.session_store.record_exchange(
            call_sid,
            user_input,
            assistant_reply,
            {
                "tool_used": tool_result.tool if tool_result else None,
                "tool_success": tool_result.success if tool_result else None,
            },
        )
        if is_commitment(user_input):
            await self.session_store.record_decision(call_sid, f"User commitment: {user_input}")

        await self.call_log.log_exchange(
            call_sid,
            user_input,
            assistant_reply,
            session_state=session.state.value,
            tool_used=tool_result.tool if tool_result else None,
            tool_success=tool_result.success if tool_result else None,
        )

        logger.info(f"[TURN] Assistant reply: '{assistant_reply}' - CallSid: {call_sid}")
        return ResponseDirective.listen(
            assistant_reply,
            fallback_prompts=[TURN_REPROMPT],
            final_line=TURN_FINAL_LINE,
        )

    async def _tool_reply(self, history) -> tuple[str, Optional[ToolResult]]:
        try:
            reply = await self.agent_service.reply_with_tools(history)
        except ReplyGenerationError as e:
            logger.warning(f"[TURN] Structured reply failed, using plain reply: {e}")
            return await self.agent_service.reply(history), None

        if isinstance(reply, ToolRequest):
            result = await self.tool_dispatcher.execute(reply)
            if result.success:
                return f"Got it. {result.message}", result
            return f"Couldn't add that. {result.message}", result
        elif isinstance(reply, FreeText):
            return reply.content, None
        raise TypeError(f"Unexpected reply type: {type(reply).__name__}")

    async def _conversational_reply(self, history, day_analysis: Optional[str]) -> str:
        if day_analysis:
            try:
                return await self.agent_service.contextual_reply(history, day_analysis)
            except Exception as e:
                logger.warning(f"[TURN] Contextual reply failed, using plain reply: {type(e).__name__}: {e}")
        return await self.agent_service.reply(history)
