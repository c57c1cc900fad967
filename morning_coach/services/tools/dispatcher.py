"""Routes structured tool requests to the task and calendar services."""
import logging
from typing import Optional

from morning_coach.services.agent.replies import ToolRequest, ToolResult
from morning_coach.services.tools.calendar import CalendarClient
from morning_coach.services.tools.notion import NotionClient

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Runs a ToolRequest against the matching external service."""

    def __init__(
        self,
        notion_client: Optional[NotionClient] = None,
        calendar_client: Optional[CalendarClient] = None,
    ):
        self.notion_client = notion_client or NotionClient()
        self.calendar_client = calendar_client or CalendarClient()

    async def execute(self, request: ToolRequest) -> ToolResult:
        """Execute a tool request. Never raises; failures come back as results."""
        logger.info(f"[TOOLS] Executing {request.kind} - Title: '{request.title}', Time: {request.time}")
        try:
            if request.kind == "add_task":
                return await self._add_task(request)
            elif request.kind == "add_event":
                return await self._add_event(request)
            return ToolResult(tool=request.kind, success=False, message="Unknown action.")
        except Exception as e:
            logger.error(
                f"[TOOLS] Tool execution error - Kind: {request.kind}, Error: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return ToolResult(tool=request.kind, success=False, message="Something went wrong.")

    async def _add_task(self, request: ToolRequest) -> ToolResult:
        if not self.notion_client.tasks_configured:
            return ToolResult(tool="add_task", success=False, message="Tasks not configured.")

        created = await self.notion_client.add_task(request.title, priority=request.priority)
        return ToolResult(
            tool="add_task",
            success=created,
            message="Added to your tasks." if created else "Task creation failed.",
            item=request.title,
        )

    async def _add_event(self, request: ToolRequest) -> ToolResult:
        if not self.calendar_client.configured:
            return ToolResult(tool="add_event", success=False, message="Calendar not configured.")

        created = await self.calendar_client.add_event(request.title, request.time)
        item = f"{request.title} at {request.time}" if request.time else request.title
        return ToolResult(
            tool="add_event",
            success=created,
            message="Added to your calendar." if created else "Calendar event failed.",
            item=item,
        )
