"""Database models for the call log/audit store."""
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ExchangeLog(Base):
    """One user/agent exchange during a coaching call."""

    __tablename__ = "exchange_logs"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, index=True, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    user_input = Column(Text, nullable=False)
    assistant_reply = Column(Text, nullable=False)
    tool_used = Column(String, nullable=True)
    tool_success = Column(Boolean, nullable=True)
    session_state = Column(String, nullable=False)
    source = Column(String, default="morning_coach", nullable=False)


class MissedCall(Base):
    """A call that never reached a live conversation."""

    __tablename__ = "missed_calls"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, index=True, nullable=False)
    phone_number = Column(String, nullable=True)
    reason = Column(String, nullable=False)  # no-answer, failed, busy, canceled, voicemail-answered
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SessionLog(Base):
    """Final snapshot of a call session, written once when it ends."""

    __tablename__ = "session_logs"

    id = Column(Integer, primary_key=True, index=True)
    call_sid = Column(String, index=True, nullable=False)
    session_type = Column(String, nullable=False)  # unknown, conversation, voicemail
    state = Column(String, nullable=False)
    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    exchanges = Column(JSON, nullable=True)
    decisions = Column(JSON, nullable=True)
    insights = Column(JSON, nullable=True)
