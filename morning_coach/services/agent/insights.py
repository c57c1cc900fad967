"""End-of-call insight extraction."""
import random
from datetime import date
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from morning_coach.core.clock import local_now
from morning_coach.services.agent.constants import (
    ACTION_PHRASE_PATTERN,
    DEFAULT_ENERGY_LEVEL,
    DEFAULT_MOOD,
    DEFAULT_NOTES,
    DURATION_PATTERN,
    ENDING_MESSAGES,
    MAX_PRIORITIES,
    MOOD_RULES,
)
from morning_coach.services.call_session.models import DayPlan

# Longest priority restated in the spoken closing line
MAX_SPOKEN_PRIORITY_LENGTH = 30


class InsightSummary(BaseModel):
    """Structured summary of one coaching call."""

    model_config = ConfigDict(frozen=True)

    date: str
    priorities: List[str] = []
    mood: str = DEFAULT_MOOD
    energy_level: str = DEFAULT_ENERGY_LEVEL
    notes: str = DEFAULT_NOTES


def _extract_priorities(user_messages: Sequence[str], plan: Optional[DayPlan]) -> List[str]:
    mentions: List[str] = []
    habits = plan.habits if plan else []

    for message in user_messages:
        lowered = message.lower()

        for habit in habits:
            words = habit.text.lower().split()
            if words and words[0] in lowered:
                mentions.append(habit.text)

        duration = DURATION_PATTERN.search(message)
        if duration:
            mentions.append(f"{duration.group(0)} commitment made")

        for match in ACTION_PHRASE_PATTERN.finditer(message):
            mentions.append(match.group(0).strip())

    # Unique, first-seen order
    return list(dict.fromkeys(mentions))[:MAX_PRIORITIES]


def _classify_mood(user_messages: Sequence[str]) -> tuple[str, str]:
    combined = " ".join(user_messages).lower()
    for pattern, mood, energy_level in MOOD_RULES:
        if pattern.search(combined):
            return mood, energy_level
    return DEFAULT_MOOD, DEFAULT_ENERGY_LEVEL


def _build_notes(user_turns: int, decisions: Sequence[str], priorities: Sequence[str]) -> str:
    key_points = []
    if decisions:
        key_points.append(f"Made {len(decisions)} commitments")
    if priorities:
        key_points.append(f"Focus: {priorities[0]}")
    if user_turns > 3:
        key_points.append("Extended conversation")
    elif user_turns > 1:
        key_points.append("Brief interaction")
    return ". ".join(key_points) or DEFAULT_NOTES


def extract_session_insights(
    history: Sequence[Dict[str, str]],
    decisions: Sequence[str],
    plan: Optional[DayPlan] = None,
    today: Optional[date] = None,
) -> InsightSummary:
    """
    Summarize a call from its conversation history.

    Args:
        history: Full conversation context (system, user and assistant entries)
        decisions: Commitments recorded during the call
        plan: Today's habits and events, used to spot habit mentions
        today: Date stamped on the summary (defaults to today in the coaching timezone)

    Returns:
        InsightSummary with up to three priorities, mood, energy level and notes
    """
    user_messages = [msg["content"] for msg in history if msg.get("role") == "user"]

    priorities = _extract_priorities(user_messages, plan)
    mood, energy_level = _classify_mood(user_messages)

    return InsightSummary(
        date=(today or local_now().date()).isoformat(),
        priorities=priorities,
        mood=mood,
        energy_level=energy_level,
        notes=_build_notes(len(user_messages), decisions, priorities),
    )


def shorten_for_speech(text: str, limit: int = MAX_SPOKEN_PRIORITY_LENGTH) -> str:
    """Cut long text on a word boundary so it reads well aloud."""
    if len(text) <= limit:
        return text
    words = text[:limit].split(" ")
    return " ".join(words[:-1]) if len(words) > 1 else words[0]


def get_ending_message(insights: InsightSummary, rng: Optional[random.Random] = None) -> str:
    """Closing line for the call: the top priority, or a generic encouragement."""
    if insights.priorities:
        return f"{shorten_for_speech(insights.priorities[0])} locked in. Execute."
    return (rng or random).choice(ENDING_MESSAGES)
