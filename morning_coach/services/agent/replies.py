"""Reply types returned by the reply-generation service."""
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter


class FreeText(BaseModel):
    """Plain spoken reply."""

    kind: Literal["text"] = "text"
    content: str


class ToolRequest(BaseModel):
    """Request to run a side-effecting action before replying."""

    kind: Literal["add_task", "add_event"]
    title: str
    time: Optional[str] = None  # Only for add_event, free text like "tomorrow at 9am"
    priority: str = "Medium"  # Only for add_task


AgentReply = Annotated[Union[FreeText, ToolRequest], Field(discriminator="kind")]

agent_reply_adapter = TypeAdapter(AgentReply)


class ToolResult(BaseModel):
    """Outcome of a dispatched tool request."""

    tool: str
    success: bool
    message: str
    item: Optional[str] = None
