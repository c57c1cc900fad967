"""Today's habits and events, loaded once at call start."""
import logging
from datetime import datetime
from typing import Optional

from morning_coach.services.call_session.models import CalendarEvent, DayPlan, Habit
from morning_coach.services.tools.calendar import CalendarClient
from morning_coach.services.tools.notion import NotionClient

logger = logging.getLogger(__name__)


class DayPlanService:
    """Builds a DayPlan from the habits database and the calendar."""

    def __init__(
        self,
        notion_client: Optional[NotionClient] = None,
        calendar_client: Optional[CalendarClient] = None,
    ):
        self.notion_client = notion_client or NotionClient()
        self.calendar_client = calendar_client or CalendarClient()

    async def get_today_plan(self, now: Optional[datetime] = None) -> DayPlan:
        """
        Fetch today's plan.

        Each source is optional; one failing or unconfigured source leaves its
        half of the plan empty.
        """
        habits = []
        events = []

        if self.notion_client.habits_configured:
            try:
                habits = [Habit(text=text) for text in await self.notion_client.get_habits()]
            except Exception as e:
                logger.error(f"[DAY PLAN] Failed to load habits: {type(e).__name__}: {e}")

        if self.calendar_client.configured:
            try:
                raw_events = await self.calendar_client.get_events_for_rest_of_day(now)
                events = [CalendarEvent(title=e["title"], start=e["start"]) for e in raw_events]
            except Exception as e:
                logger.error(f"[DAY PLAN] Failed to load events: {type(e).__name__}: {e}")

        logger.info(f"[DAY PLAN] Loaded {len(habits)} habits and {len(events)} events")
        return DayPlan(habits=habits, events=events)
