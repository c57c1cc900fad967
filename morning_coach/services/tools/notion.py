"""Notion API client for tasks and habits."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from morning_coach.core.config import settings

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"


class NotionClient:
    """Thin async wrapper over the Notion REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        tasks_db_id: Optional[str] = None,
        habits_db_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.notion_api_key
        self.tasks_db_id = tasks_db_id if tasks_db_id is not None else settings.notion_tasks_db_id
        self.habits_db_id = habits_db_id if habits_db_id is not None else settings.notion_habits_db_id
        self.http_client = http_client

    @property
    def tasks_configured(self) -> bool:
        return bool(self.api_key and self.tasks_db_id)

    @property
    def habits_configured(self) -> bool:
        return bool(self.api_key and self.habits_db_id)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{NOTION_API_URL}{path}"
        if self.http_client is not None:
            response = await self.http_client.post(url, json=body, headers=self._headers())
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(url, json=body, headers=self._headers())
        response.raise_for_status()
        return response.json()

    async def add_task(self, title: str, priority: str = "Medium") -> bool:
        """Create a page in the tasks database."""
        body = {
            "parent": {"database_id": self.tasks_db_id},
            "properties": {
                "Name": {"title": [{"text": {"content": title}}]},
                "Priority": {"select": {"name": priority}},
            },
        }
        try:
            result = await self._post("/pages", body)
        except httpx.HTTPError as e:
            logger.error(f"[NOTION] Task creation failed - Title: '{title}', Error: {type(e).__name__}: {e}")
            return False
        logger.info(f"[NOTION] Task created - Title: '{title}', Page: {result.get('id')}")
        return True

    async def get_habits(self) -> List[str]:
        """Return the titles of all pages in the habits database."""
        result = await self._post(f"/databases/{self.habits_db_id}/query", {"page_size": 50})
        habits = []
        for page in result.get("results", []):
            for prop in page.get("properties", {}).values():
                if prop.get("type") == "title":
                    text = "".join(part.get("plain_text", "") for part in prop.get("title", []))
                    if text.strip():
                        habits.append(text.strip())
                    break
        return habits
