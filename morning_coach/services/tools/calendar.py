"""Google Calendar API client."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from morning_coach.core.clock import local_now
from morning_coach.core.config import settings

logger = logging.getLogger(__name__)

CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3"


class CalendarClient:
    """Adds and lists events on one Google calendar."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        calendar_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.google_calendar_access_token
        self.calendar_id = calendar_id or settings.google_calendar_id
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.access_token)

    async def _request(self, method: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{CALENDAR_API_URL}/calendars/{self.calendar_id}{path}"
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if self.http_client is not None:
            response = await self.http_client.request(method, url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.request(method, url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    async def add_event(self, title: str, time: Optional[str] = None) -> bool:
        """Create an event from a natural-language description via quickAdd."""
        text = f"{title} at {time}" if time else title
        try:
            result = await self._request("POST", "/events/quickAdd", {"text": text})
        except httpx.HTTPError as e:
            logger.error(f"[CALENDAR] Event creation failed - Text: '{text}', Error: {type(e).__name__}: {e}")
            return False
        logger.info(f"[CALENDAR] Event created - Text: '{text}', Event: {result.get('id')}")
        return True

    async def get_events_for_rest_of_day(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """List events from now until local midnight, as {title, start} dicts."""
        now = local_now(now)
        end_of_day = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        result = await self._request(
            "GET",
            "/events",
            {
                "timeMin": now.isoformat(),
                "timeMax": end_of_day.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        events = []
        for item in result.get("items", []):
            start = item.get("start", {})
            start_at = start.get("dateTime")
            if not start_at and start.get("date"):
                # All-day events only carry a date
                start_at = f"{start['date']}T00:00:00"
            events.append({"title": item.get("summary", "Untitled event"), "start": start_at})
        return events
