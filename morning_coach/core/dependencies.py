"""FastAPI dependencies."""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from morning_coach.db.database import get_db
from morning_coach.services.agent.agent import AgentService
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.store import SessionStore
from morning_coach.services.persistence.logs import CallLogService
from morning_coach.services.plan.day_plan import DayPlanService
from morning_coach.services.tools.dispatcher import ToolDispatcher


def get_session_store(request: Request) -> SessionStore:
    """Get the session store created at startup."""
    return request.app.state.session_store


def get_context_store(request: Request) -> ContextStore:
    """Get the conversation context store created at startup."""
    return request.app.state.context_store


def get_call_log(db: AsyncSession = Depends(get_db)) -> CallLogService:
    return CallLogService(db)


def get_agent_service() -> AgentService:
    return AgentService()


def get_tool_dispatcher() -> ToolDispatcher:
    return ToolDispatcher()


def get_day_plan_service() -> DayPlanService:
    return DayPlanService()
