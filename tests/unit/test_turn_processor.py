"""Unit tests for turn processing."""
import pytest

from morning_coach.services.agent.agent import ReplyGenerationError
from morning_coach.services.agent.constants import (
    ENDING_MESSAGES,
    FALLBACK_CLOSING,
    FALLBACK_REPLY,
    NO_SPEECH_REPROMPT,
    TURN_FINAL_LINE,
    TURN_REPROMPT,
    VOICEMAIL_CLOSING,
)
from morning_coach.services.agent.replies import FreeText, ToolRequest, ToolResult
from morning_coach.services.call_session.models import DayPlan, Habit, SessionState, SessionType

WORKOUT_PLAN = DayPlan(habits=[Habit(text="Workout")])


class TestVoicemailTurn:
    """Test voicemail handling during a call."""

    @pytest.mark.asyncio
    async def test_phone_number_reply_hangs_up(
        self, turn_processor, session_manager, session_store, mock_call_log, mock_agent
    ):
        """Test that a read-back number ends the call as voicemail."""
        await session_manager.start_call("CA_vm")

        directive = await turn_processor.process("CA_vm", "858 386 6200", phone_number="+15550001111")

        assert directive.hangup is True
        assert directive.lines == [VOICEMAIL_CLOSING]
        mock_call_log.log_missed_call.assert_awaited_once_with(
            "CA_vm", "voicemail-answered", "+15550001111"
        )
        mock_call_log.log_session.assert_awaited_once()
        logged = mock_call_log.log_session.call_args[0][0]
        assert logged.session_type == SessionType.VOICEMAIL
        assert logged.state == SessionState.VOICEMAIL
        assert session_store.active_call_sids() == []
        mock_agent.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_voicemail_phrase_wins_over_end_intent(self, turn_processor, mock_call_log):
        """Test that 'you may hang up' is voicemail, not a goodbye."""
        directive = await turn_processor.process("CA_vm", "When you are done you may hang up")

        assert directive.lines == [VOICEMAIL_CLOSING]
        mock_call_log.log_missed_call.assert_awaited_once()


class TestConversationTurn:
    """Test normal conversational turns."""

    @pytest.mark.asyncio
    async def test_plain_turn_uses_reply_and_listens(
        self, turn_processor, session_manager, session_store, context_store, mock_agent, mock_call_log
    ):
        await session_manager.start_call("CA_1")

        directive = await turn_processor.process("CA_1", "I'm going to write for an hour")

        assert directive.hangup is False
        assert directive.lines == ["What's first?"]
        assert directive.fallback_prompts == [TURN_REPROMPT]
        assert directive.final_line == TURN_FINAL_LINE

        session = await session_store.get("CA_1")
        assert session.state == SessionState.CONVERSATION
        assert session.session_type == SessionType.CONVERSATION
        assert session.decisions == ["User commitment: I'm going to write for an hour"]
        assert session.exchanges[-1].meta == {"tool_used": None, "tool_success": None}

        history = await context_store.get("CA_1")
        assert history[-2] == {"role": "user", "content": "I'm going to write for an hour"}
        assert history[-1] == {"role": "assistant", "content": "What's first?"}

        mock_call_log.log_exchange.assert_awaited_once_with(
            "CA_1",
            "I'm going to write for an hour",
            "What's first?",
            session_state="conversation",
            tool_used=None,
            tool_success=None,
        )

    @pytest.mark.asyncio
    async def test_contextual_reply_when_plan_known(self, turn_processor, session_store, mock_agent):
        await session_store.set_plan("CA_1", WORKOUT_PLAN, "Habits: Workout")

        directive = await turn_processor.process("CA_1", "not sure yet")

        assert directive.lines == ["Your workout is at nine. Start now."]
        mock_agent.contextual_reply.assert_awaited_once()
        assert mock_agent.contextual_reply.call_args[0][1] == "Habits: Workout"
        mock_agent.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_contextual_failure_falls_back_to_plain_reply(
        self, turn_processor, session_store, mock_agent
    ):
        """Test that a contextual reply failure degrades within the turn."""
        await session_store.set_plan("CA_1", WORKOUT_PLAN, "Habits: Workout")
        mock_agent.contextual_reply.side_effect = ReplyGenerationError("timeout")

        directive = await turn_processor.process("CA_1", "not sure yet")

        assert directive.lines == ["What's first?"]
        mock_agent.reply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reply_failure_gives_fallback_reply(self, turn_processor, mock_agent):
        mock_agent.reply.side_effect = ReplyGenerationError("down")

        directive = await turn_processor.process("CA_1", "not sure yet")

        assert directive.hangup is False
        assert directive.lines == [FALLBACK_REPLY]

    @pytest.mark.asyncio
    async def test_empty_speech_reprompts(self, turn_processor, session_store, mock_agent):
        directive = await turn_processor.process("CA_1", "   ")

        assert directive.hangup is False
        assert directive.lines == [NO_SPEECH_REPROMPT]
        assert session_store.active_call_sids() == []
        mock_agent.reply.assert_not_called()


class TestToolTurn:
    """Test turns that go through the tool path."""

    @pytest.mark.asyncio
    async def test_task_request_is_dispatched(
        self, turn_processor, session_store, mock_agent, mock_dispatcher, mock_call_log
    ):
        """Test that a tool success is reported and no decision is recorded."""
        mock_agent.reply_with_tools.return_value = ToolRequest(kind="add_task", title="call the dentist")

        directive = await turn_processor.process("CA_1", "add a reminder to call the dentist")

        assert directive.lines == ["Got it. Added to your tasks."]
        mock_dispatcher.execute.assert_awaited_once()
        session = await session_store.get("CA_1")
        assert session.decisions == []
        assert session.exchanges[-1].meta == {"tool_used": "add_task", "tool_success": True}
        assert mock_call_log.log_exchange.call_args.kwargs["tool_used"] == "add_task"

    @pytest.mark.asyncio
    async def test_failed_tool_is_reported(self, turn_processor, mock_agent, mock_dispatcher):
        mock_agent.reply_with_tools.return_value = ToolRequest(
            kind="add_event", title="gym", time="6pm"
        )
        mock_dispatcher.execute.return_value = ToolResult(
            tool="add_event", success=False, message="Calendar not configured."
        )

        directive = await turn_processor.process("CA_1", "schedule gym at 6pm")

        assert directive.lines == ["Couldn't add that. Calendar not configured."]

    @pytest.mark.asyncio
    async def test_text_reply_on_tool_path(self, turn_processor, mock_agent, mock_dispatcher):
        mock_agent.reply_with_tools.return_value = FreeText(content="What time works?")

        directive = await turn_processor.process("CA_1", "schedule something")

        assert directive.lines == ["What time works?"]
        mock_dispatcher.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_structured_failure_uses_plain_reply(self, turn_processor, mock_agent, mock_dispatcher):
        mock_agent.reply_with_tools.side_effect = ReplyGenerationError("not JSON")

        directive = await turn_processor.process("CA_1", "add stretching")

        assert directive.lines == ["What's first?"]
        mock_dispatcher.execute.assert_not_called()


class TestSessionEnd:
    """Test end-intent handling."""

    @pytest.mark.asyncio
    async def test_goodbye_restates_priority_and_hangs_up(
        self, turn_processor, session_manager, context_store, mock_call_log
    ):
        await session_manager.start_call("CA_end")
        await turn_processor.process("CA_end", "I'm going to start the report")
        await turn_processor.process("CA_end", "20 minutes")

        directive = await turn_processor.process("CA_end", "that's it, thanks")

        assert directive.hangup is True
        assert directive.lines == ["start the report locked in. Execute."]
        assert await context_store.has("CA_end") is False

        mock_call_log.log_session.assert_awaited_once()
        session, insights = mock_call_log.log_session.call_args[0]
        assert session.state == SessionState.ENDED
        assert len(session.exchanges) == 3
        assert insights.priorities == ["start the report", "20 minutes commitment made"]

    @pytest.mark.asyncio
    async def test_goodbye_without_priorities_uses_rotation(self, turn_processor, session_manager):
        await session_manager.start_call("CA_end")

        directive = await turn_processor.process("CA_end", "goodbye")

        assert directive.hangup is True
        assert directive.lines[0] in ENDING_MESSAGES

    @pytest.mark.asyncio
    async def test_finalize_failure_still_hangs_up(self, turn_processor, session_manager, mock_call_log):
        await session_manager.start_call("CA_end")
        mock_call_log.log_session.side_effect = RuntimeError("db gone")

        directive = await turn_processor.process("CA_end", "I'm done")

        assert directive.hangup is True
        assert directive.lines == [FALLBACK_CLOSING]

    @pytest.mark.asyncio
    async def test_terminal_status_finalizes_without_reply(
        self, turn_processor, session_manager, mock_call_log, mock_agent
    ):
        await session_manager.start_call("CA_gone")

        directive = await turn_processor.process("CA_gone", "hello", call_status="completed")

        assert directive is None
        mock_call_log.log_session.assert_awaited_once()
        mock_agent.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_finalize_twice_logs_once(self, turn_processor, session_manager, session_store, mock_call_log):
        """Test that a status callback after the goodbye does not log again."""
        await session_manager.start_call("CA_end")
        await turn_processor.process("CA_end", "that's it")

        session = await session_manager.handle_status("CA_end", "completed")

        assert mock_call_log.log_session.await_count == 1
        assert session.state == SessionState.ENDED


class TestSpeechAfterCallEnded:
    """Test utterances that arrive after a terminal status callback."""

    @pytest.mark.asyncio
    async def test_goodbye_after_completed_status_logs_once(
        self, turn_processor, session_manager, session_store, mock_call_log
    ):
        await session_manager.start_call("CA_late")
        await session_manager.handle_status("CA_late", "completed")

        directive = await turn_processor.process("CA_late", "that's it, thanks")

        assert directive is None
        assert mock_call_log.log_session.await_count == 1
        assert session_store.active_call_sids() == []

    @pytest.mark.asyncio
    async def test_voicemail_after_no_answer_logs_once(
        self, turn_processor, session_manager, mock_call_log
    ):
        await session_manager.start_call("CA_late")
        await session_manager.handle_status("CA_late", "no-answer")

        directive = await turn_processor.process("CA_late", "858 386 6200")

        assert directive is None
        mock_call_log.log_missed_call.assert_awaited_once_with("CA_late", "no-answer", None)
        assert mock_call_log.log_session.await_count == 1

    @pytest.mark.asyncio
    async def test_turn_after_completed_status_leaves_no_live_session(
        self, turn_processor, session_manager, session_store, mock_agent
    ):
        await session_manager.start_call("CA_late")
        await session_manager.handle_status("CA_late", "completed")

        directive = await turn_processor.process("CA_late", "what should I do")

        assert directive is None
        assert session_store.active_call_sids() == []
        mock_agent.reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_restarted_call_is_processed_again(self, turn_processor, session_manager):
        await session_manager.start_call("CA_late")
        await session_manager.handle_status("CA_late", "completed")
        await session_manager.start_call("CA_late")

        directive = await turn_processor.process("CA_late", "what should I do")

        assert directive.lines == ["What's first?"]


class TestContextAfterFailedTurn:
    """Test that a failed turn leaves the conversation well-formed."""

    @pytest.mark.asyncio
    async def test_failed_reply_adds_no_user_entry(self, turn_processor, session_manager, context_store, mock_agent):
        await session_manager.start_call("CA_ctx")
        mock_agent.reply.side_effect = ReplyGenerationError("down")

        directive = await turn_processor.process("CA_ctx", "not sure yet")

        assert directive.lines == [FALLBACK_REPLY]
        history = await context_store.get("CA_ctx")
        assert [m["role"] for m in history] == ["system", "assistant"]

    @pytest.mark.asyncio
    async def test_next_turn_has_no_consecutive_user_entries(
        self, turn_processor, session_manager, context_store, mock_agent
    ):
        await session_manager.start_call("CA_ctx")
        mock_agent.reply.side_effect = [ReplyGenerationError("down"), "Pick one."]

        await turn_processor.process("CA_ctx", "not sure yet")
        await turn_processor.process("CA_ctx", "the report")

        sent = mock_agent.reply.call_args[0][0]
        roles = [m["role"] for m in sent]
        assert roles == ["system", "assistant", "user"]
        assert sent[-1]["content"] == "the report"
        history = await context_store.get("CA_ctx")
        assert [m["role"] for m in history] == ["system", "assistant", "user", "assistant"]
