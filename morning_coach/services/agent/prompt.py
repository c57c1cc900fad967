"""Agent prompt templates and the call opener."""
from datetime import datetime, timedelta
from typing import List, Optional

from morning_coach.core.clock import local_now, to_local
from morning_coach.services.call_session.models import CalendarEvent, DayPlan

SYSTEM_PROMPT = """You are a blunt, high-accountability morning coach on a phone call.
Your job is to get the caller to commit to concrete work for today.

When responding:
- Keep responses short (1-2 sentences), spoken aloud, no lists or markdown
- Push for specifics: what, when, for how long
- Call out vague answers and avoidance directly, but stay constructive
- Reference their habits and calendar when relevant
- Never mention that you are an AI or a language model"""


TOOL_PROMPT = """The caller may be asking you to add a task or put something on their calendar.
Respond with a JSON object in exactly one of these shapes:

{"kind": "add_task", "title": "short task title", "priority": "High|Medium|Low"}
{"kind": "add_event", "title": "event title", "time": "when, as the caller said it"}
{"kind": "text", "content": "your spoken reply"}

Use "text" if the caller is not actually asking for a task or event.
Always output valid JSON."""


def get_system_prompt() -> str:
    """Coach persona for the first entry of every conversation."""
    return SYSTEM_PROMPT


def get_tool_prompt() -> str:
    return TOOL_PROMPT


def get_contextual_prompt(day_analysis: str) -> str:
    """Extra system context carrying today's plan."""
    return f"""Today's plan for the caller:
{day_analysis}

Tie your reply to this plan. If they commit to something off-plan, ask what gets dropped."""


def _greeting_for_hour(hour: int) -> str:
    if hour < 7:
        return "Early. Good."
    if hour < 8:
        return "On time. Let's work."
    if hour < 9:
        return "Morning."
    if hour < 10:
        return "Getting late."
    return "Already behind schedule."


def upcoming_events(events: List[CalendarEvent], now: datetime, within: timedelta = timedelta(hours=3)) -> List[CalendarEvent]:
    """Events starting after now and within the given window."""
    now_local = local_now(now)
    soon = []
    for event in events:
        if event.start is None:
            continue
        until = to_local(event.start) - now_local
        if timedelta(0) < until < within:
            soon.append(event)
    return soon


def _short_habit(text: str, limit: int = 20) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def generate_opener(plan: DayPlan, now: Optional[datetime] = None) -> str:
    """
    Build the first line spoken on the call.

    Time-of-day greeting, then the next event in the coming three hours (with
    minutes left if under an hour) and the top two habits.
    """
    now = local_now(now)
    greeting = _greeting_for_hour(now.hour)
    details = []

    soon = upcoming_events(plan.events, now)
    if soon:
        next_event = soon[0]
        minutes_until = int((to_local(next_event.start) - now).total_seconds() // 60)
        if minutes_until < 60:
            details.append(f"{next_event.title} in {minutes_until} minutes. Prep time.")
        elif minutes_until < 90:
            details.append(f"{next_event.title} soon. Ready?")

    habit_names = [_short_habit(habit.text or "Task") for habit in plan.habits[:2]]
    if len(habit_names) == 1:
        details.append(f"{habit_names[0]} needs doing.")
    elif len(habit_names) == 2:
        details.append(f"{habit_names[0]} and {habit_names[1]} waiting.")

    if not details:
        return f"{greeting} No excuses today. What's your focus?"
    if len(details) == 1:
        return f"{greeting} {details[0]} Start now or explain why not."
    return f"{greeting} {' '.join(details)} Pick one and commit."


def summarize_plan(plan: DayPlan, now: Optional[datetime] = None) -> Optional[str]:
    """Text digest of the day plan for contextual replies, None if empty."""
    if plan.is_empty:
        return None
    now = local_now(now)

    lines = []
    if plan.habits:
        lines.append("Habits: " + ", ".join(habit.text for habit in plan.habits))
    if plan.events:
        event_parts = []
        for event in plan.events:
            when = to_local(event.start).strftime("%H:%M") if event.start else "unscheduled"
            event_parts.append(f"{event.title} ({when})")
        lines.append("Events: " + ", ".join(event_parts))
    soon = upcoming_events(plan.events, now)
    if soon:
        lines.append("Coming up in the next 3 hours: " + ", ".join(event.title for event in soon))
    return "\n".join(lines)
