"""Call session models."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Lifecycle states of a coaching call."""

    INITIALIZING = "initializing"  # Call answered, day plan not loaded yet
    OVERVIEW = "overview"  # Opener spoken, waiting for the first reply
    CONVERSATION = "conversation"  # At least one normal turn processed
    ENDING = "ending"  # Session-end procedure running
    ENDED = "ended"
    VOICEMAIL = "voicemail"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.ENDED, SessionState.VOICEMAIL)


class SessionType(str, Enum):
    """What kind of party answered the call."""

    UNKNOWN = "unknown"
    CONVERSATION = "conversation"
    VOICEMAIL = "voicemail"

    def __str__(self) -> str:
        return self.value


class Habit(BaseModel):
    """A habit or task planned for today."""

    text: str


class CalendarEvent(BaseModel):
    """An upcoming calendar event."""

    title: str
    start: Optional[datetime] = None


class DayPlan(BaseModel):
    """Snapshot of today's habits and events, fetched once per call."""

    habits: List[Habit] = []
    events: List[CalendarEvent] = []

    @property
    def is_empty(self) -> bool:
        return not self.habits and not self.events


class Exchange(BaseModel):
    """One user utterance and the agent's reply."""

    user_text: str
    agent_text: str
    meta: Dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class Session(BaseModel):
    """State of one active coaching call."""

    call_sid: str
    state: SessionState = SessionState.INITIALIZING
    session_type: SessionType = SessionType.UNKNOWN
    exchanges: List[Exchange] = []
    decisions: List[str] = []
    plan: DayPlan = Field(default_factory=DayPlan)
    day_analysis: Optional[str] = None  # Digest of the plan for contextual replies
    started_at: datetime = Field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def add_exchange(self, user_text: str, agent_text: str, meta: Optional[Dict[str, Any]] = None) -> None:
        """Append an exchange."""
        self.exchanges.append(Exchange(user_text=user_text, agent_text=agent_text, meta=meta or {}))

    def add_decision(self, text: str) -> None:
        """Append a commitment or decision."""
        self.decisions.append(text)

    def to_log_dict(self) -> Dict[str, Any]:
        """Serialize exchanges and decisions for the audit store."""
        return {
            "exchanges": [exchange.model_dump(mode="json") for exchange in self.exchanges],
            "decisions": list(self.decisions),
        }
