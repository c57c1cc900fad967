"""Main FastAPI application."""
from contextlib import asynccontextmanager
from fastapi import FastAPI

from morning_coach.core.logging import setup_logging
from morning_coach.db.database import init_db
from morning_coach.api import calls, health
from morning_coach.api.webhooks import voice
from morning_coach.services.agent.prompt import get_system_prompt
from morning_coach.services.call_session.context import ContextStore
from morning_coach.services.call_session.store import SessionStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    app.state.session_store = SessionStore()
    app.state.context_store = ContextStore(get_system_prompt())
    yield
    # Shutdown
    app.state.session_store.teardown()
    app.state.context_store.teardown()


app = FastAPI(
    title="Morning Coach Voice Agent",
    description="Phone coaching sessions over Twilio with end-of-call insights",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(voice.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(calls.router, tags=["calls"])


@app.get("/")
async def root():
    return {"message": "Morning Coach Voice Agent API", "version": "0.1.0"}
