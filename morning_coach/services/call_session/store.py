"""In-memory registry of active call sessions."""
import asyncio
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from morning_coach.services.call_session.models import (
    DayPlan,
    Session,
    SessionState,
    SessionType,
)

logger = logging.getLogger(__name__)

# How many finished sessions to remember so a late second `end` sees the snapshot
ENDED_CACHE_SIZE = 256


class SessionStore:
    """
    Owns the lifecycle of call sessions, keyed by call SID.

    Created at application startup and torn down at shutdown; handlers get it
    injected rather than reaching for module-level state. In production, use
    Redis or similar if more than one worker process is involved.
    """

    def __init__(self, ended_cache_size: int = ENDED_CACHE_SIZE):
        self._sessions: Dict[str, Session] = {}
        self._ended: "OrderedDict[str, Session]" = OrderedDict()
        self._ended_cache_size = ended_cache_size
        self._end_lock = asyncio.Lock()

    async def create(self, call_sid: str) -> Session:
        """Create a session, replacing any live session for the same call."""
        if call_sid in self._sessions:
            logger.warning(f"[SESSION STORE] Replacing live session - CallSid: {call_sid}")
        session = Session(call_sid=call_sid)
        self._sessions[call_sid] = session
        self._ended.pop(call_sid, None)
        return session

    async def get(self, call_sid: str) -> Session:
        """Get the live session for a call, creating one if absent."""
        session = self._sessions.get(call_sid)
        if session is None:
            logger.info(f"[SESSION STORE] No live session, creating one - CallSid: {call_sid}")
            session = await self.create(call_sid)
        return session

    async def exists(self, call_sid: str) -> bool:
        return call_sid in self._sessions

    async def is_ended(self, call_sid: str) -> bool:
        """Check whether a call was finalized and has not been started again."""
        return call_sid not in self._sessions and call_sid in self._ended

    async def set_state(self, call_sid: str, new_state: SessionState) -> Session:
        """Move a session to a new state. Terminal sessions do not move."""
        session = await self.get(call_sid)
        if session.is_terminal:
            logger.debug(
                f"[SESSION STORE] Ignoring transition {session.state} -> {new_state} "
                f"on terminal session - CallSid: {call_sid}"
            )
            return session
        if session.state != new_state:
            logger.info(f"[SESSION STORE] State {session.state} -> {new_state} - CallSid: {call_sid}")
            session.state = new_state
        return session

    async def set_session_type(self, call_sid: str, session_type: SessionType) -> Session:
        """Set the session type once; later changes are ignored."""
        session = await self.get(call_sid)
        if session.session_type == SessionType.UNKNOWN:
            session.session_type = session_type
        return session

    async def set_plan(self, call_sid: str, plan: DayPlan, day_analysis: Optional[str] = None) -> Session:
        session = await self.get(call_sid)
        session.plan = plan
        session.day_analysis = day_analysis
        return session

    async def mark_voicemail(self, call_sid: str) -> Session:
        """Mark a session as answered by voicemail."""
        session = await self.get(call_sid)
        if session.is_terminal:
            return session
        session.session_type = SessionType.VOICEMAIL
        session.state = SessionState.VOICEMAIL
        session.ended_at = datetime.utcnow()
        logger.info(f"[SESSION STORE] Marked as voicemail - CallSid: {call_sid}")
        return session

    async def record_exchange(
        self,
        call_sid: str,
        user_text: str,
        agent_text: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Session:
        session = await self.get(call_sid)
        session.add_exchange(user_text, agent_text, meta)
        return session

    async def record_decision(self, call_sid: str, text: str) -> Session:
        session = await self.get(call_sid)
        session.add_decision(text)
        logger.info(f"[SESSION STORE] Decision recorded - CallSid: {call_sid}, Decision: {text}")
        return session

    async def end(self, call_sid: str) -> Tuple[Optional[Session], bool]:
        """
        Finalize a session and remove it from the store.

        Returns:
            Tuple of (final snapshot, newly_ended). A repeated call for the same
            call returns the cached snapshot with newly_ended=False; a call that
            never had a session returns (None, False).
        """
        async with self._end_lock:
            session = self._sessions.pop(call_sid, None)
            if session is None:
                return self._ended.get(call_sid), False

            if not session.is_terminal:
                session.state = SessionState.ENDED
            if session.ended_at is None:
                session.ended_at = datetime.utcnow()

            self._ended[call_sid] = session
            while len(self._ended) > self._ended_cache_size:
                self._ended.popitem(last=False)

        logger.info(
            f"[SESSION STORE] Session ended - CallSid: {call_sid}, "
            f"Type: {session.session_type}, State: {session.state}, "
            f"Exchanges: {len(session.exchanges)}, Decisions: {len(session.decisions)}"
        )
        return session, True

    def active_call_sids(self) -> List[str]:
        return list(self._sessions)

    def teardown(self) -> None:
        """Drop all sessions (application shutdown or test cleanup)."""
        if self._sessions:
            logger.info(f"[SESSION STORE] Teardown with {len(self._sessions)} live sessions")
        self._sessions.clear()
        self._ended.clear()
