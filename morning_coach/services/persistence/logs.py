"""Call log/audit persistence service."""
import logging
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from morning_coach.db.models import ExchangeLog, MissedCall, SessionLog
from morning_coach.services.agent.insights import InsightSummary
from morning_coach.services.call_session.models import Session

logger = logging.getLogger(__name__)


class CallLogService:
    """
    Append-only writer for exchange, missed-call and session records.

    Writes are fire-and-forget for callers: a database error is rolled back and
    logged, and the method returns None instead of raising.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _add(self, record):
        try:
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)
            return record
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"[CALL LOG] Failed to write {type(record).__name__} - "
                f"CallSid: {record.call_sid}, Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return None

    async def log_exchange(
        self,
        call_sid: str,
        user_input: str,
        assistant_reply: str,
        session_state: str,
        tool_used: Optional[str] = None,
        tool_success: Optional[bool] = None,
    ) -> Optional[ExchangeLog]:
        """Record one exchange."""
        return await self._add(
            ExchangeLog(
                call_sid=call_sid,
                user_input=user_input,
                assistant_reply=assistant_reply,
                tool_used=tool_used,
                tool_success=tool_success,
                session_state=session_state,
            )
        )

    async def log_missed_call(
        self, call_sid: str, reason: str, phone_number: Optional[str] = None
    ) -> Optional[MissedCall]:
        """Record a call that never became a conversation."""
        logger.info(f"[CALL LOG] Missed call - CallSid: {call_sid}, Reason: {reason}")
        return await self._add(MissedCall(call_sid=call_sid, phone_number=phone_number, reason=reason))

    async def log_session(
        self, session: Session, insights: Optional[InsightSummary] = None
    ) -> Optional[SessionLog]:
        """Record the final snapshot of a session, with insights when extracted."""
        data = session.to_log_dict()
        return await self._add(
            SessionLog(
                call_sid=session.call_sid,
                session_type=session.session_type.value,
                state=session.state.value,
                started_at=session.started_at,
                ended_at=session.ended_at,
                exchanges=data["exchanges"],
                decisions=data["decisions"],
                insights=insights.model_dump() if insights else None,
            )
        )

    async def get_recent_sessions(self, limit: int = 50) -> List[SessionLog]:
        result = await self.db.execute(
            select(SessionLog).order_by(desc(SessionLog.started_at)).limit(limit)
        )
        return list(result.scalars().all())

    async def get_recent_missed_calls(self, limit: int = 50) -> List[MissedCall]:
        result = await self.db.execute(
            select(MissedCall).order_by(desc(MissedCall.created_at)).limit(limit)
        )
        return list(result.scalars().all())

    async def get_exchanges(self, call_sid: str) -> List[ExchangeLog]:
        result = await self.db.execute(
            select(ExchangeLog).where(ExchangeLog.call_sid == call_sid).order_by(ExchangeLog.id)
        )
        return list(result.scalars().all())
