"""Shared test fixtures and configuration."""
import pytest
import os
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from morning_coach.main import app
from morning_coach.db.database import Base
from morning_coach.core.dependencies import (
    get_agent_service,
    get_call_log,
    get_day_plan_service,
    get_tool_dispatcher,
)
from morning_coach.services.agent.prompt import get_system_prompt
from morning_coach.services.agent.replies import ToolResult
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.manager import CallSessionManager
from morning_coach.services.call_session.models import DayPlan
from morning_coach.services.call_session.store import SessionStore
from morning_coach.services.call_session.turn_processor import TurnProcessor


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def session_store():
    """Fresh session store per test."""
    store = SessionStore()
    yield store
    store.teardown()


@pytest.fixture
def context_store():
    """Fresh conversation context store per test."""
    store = ContextStore(get_system_prompt())
    yield store
    store.teardown()


@pytest.fixture
def mock_agent():
    """Reply-generation service double."""
    agent = AsyncMock()
    agent.reply = AsyncMock(return_value="What's first?")
    agent.contextual_reply = AsyncMock(return_value="Your workout is at nine. Start now.")
    agent.reply_with_tools = AsyncMock()
    return agent


@pytest.fixture
def mock_dispatcher():
    """Tool dispatcher double that always succeeds."""
    dispatcher = AsyncMock()
    dispatcher.execute = AsyncMock(
        return_value=ToolResult(
            tool="add_task", success=True, message="Added to your tasks.", item="call the dentist"
        )
    )
    return dispatcher


@pytest.fixture
def mock_call_log():
    """Call log double that records writes."""
    return AsyncMock()


@pytest.fixture
def mock_day_plan_service():
    service = AsyncMock()
    service.get_today_plan = AsyncMock(return_value=DayPlan())
    return service


@pytest.fixture
def session_manager(session_store, context_store, mock_call_log, mock_day_plan_service):
    return CallSessionManager(session_store, context_store, mock_call_log, mock_day_plan_service)


@pytest.fixture
def turn_processor(
    session_store, context_store, session_manager, mock_agent, mock_dispatcher, mock_call_log
):
    return TurnProcessor(
        session_store, context_store, session_manager, mock_agent, mock_dispatcher, mock_call_log
    )


@pytest.fixture
def test_client(
    mock_call_log,
    session_store,
    context_store,
    mock_agent,
    mock_dispatcher,
    mock_day_plan_service,
):
    """Create FastAPI test client with overrides."""
    app.state.session_store = session_store
    app.state.context_store = context_store

    app.dependency_overrides[get_call_log] = lambda: mock_call_log
    app.dependency_overrides[get_agent_service] = lambda: mock_agent
    app.dependency_overrides[get_tool_dispatcher] = lambda: mock_dispatcher
    app.dependency_overrides[get_day_plan_service] = lambda: mock_day_plan_service

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
