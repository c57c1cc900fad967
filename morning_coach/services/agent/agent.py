"""LLM reply-generation service."""
import json
import logging
from typing import Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from morning_coach.core.config import settings
from morning_coach.services.agent.prompt import get_contextual_prompt, get_tool_prompt
from morning_coach.services.agent.replies import AgentReply, FreeText, agent_reply_adapter

logger = logging.getLogger(__name__)


class ReplyGenerationError(Exception):
    """The language model call failed or returned something unusable."""


class AgentService:
    """Service for LLM-generated coach replies."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)
        self.model = model or settings.openai_model

    async def _complete(self, messages: List[Dict[str, str]], json_mode: bool = False) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.7,
                max_tokens=150,
                **kwargs,
            )
        except Exception as e:
            raise ReplyGenerationError(f"Completion request failed: {type(e).__name__}: {e}") from e

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise ReplyGenerationError("Completion returned no content")
        return content

    async def reply(self, history: List[Dict[str, str]]) -> str:
        """Generate a plain spoken reply from the conversation history."""
        content = await self._complete(history)
        logger.info(f"[AGENT] Reply: '{content}'")
        return content

    async def contextual_reply(self, history: List[Dict[str, str]], day_analysis: str) -> str:
        """Generate a reply grounded in today's plan."""
        messages = list(history)
        # Plan context goes right after the persona so the turns stay in order
        messages.insert(1, {"role": "system", "content": get_contextual_prompt(day_analysis)})
        content = await self._complete(messages)
        logger.info(f"[AGENT] Contextual reply: '{content}'")
        return content

    async def reply_with_tools(self, history: List[Dict[str, str]]) -> AgentReply:
        """
        Ask for a structured reply that may request a tool action.

        Returns:
            FreeText or ToolRequest
        """
        messages = list(history) + [{"role": "system", "content": get_tool_prompt()}]
        content = await self._complete(messages, json_mode=True)
        logger.info(f"[AGENT] Structured reply raw: {content}")

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise ReplyGenerationError(f"Structured reply was not JSON: {e}") from e

        try:
            return agent_reply_adapter.validate_python(payload)
        except ValidationError as e:
            # A spoken reply under an unexpected tag is still usable as text
            if isinstance(payload, dict) and isinstance(payload.get("content"), str) and payload["content"].strip():
                logger.warning(f"[AGENT] Unrecognized structured reply, using its text: {payload}")
                return FreeText(content=payload["content"].strip())
            raise ReplyGenerationError(f"Structured reply did not match any action: {e}") from e
