"""Response directives and their TwiML rendering."""
from typing import List, Optional
from xml.sax.saxutils import escape

from pydantic import BaseModel

from morning_coach.core.config import settings


class ResponseDirective(BaseModel):
    """
    What to say to the caller and what to do next.

    Exactly one terminal action: keep listening for speech (hangup=False) or
    hang up. While listening, each fallback prompt is spoken in turn if the
    caller stays silent, then final_line (if any) before hanging up.
    """

    lines: List[str] = []
    hangup: bool = False
    speech_timeout: str = "auto"
    timeout: int = 8
    fallback_prompts: List[str] = []
    fallback_timeout: int = 5
    final_line: Optional[str] = None

    @classmethod
    def listen(
        cls,
        *lines: str,
        fallback_prompts: Optional[List[str]] = None,
        final_line: Optional[str] = None,
    ) -> "ResponseDirective":
        """Speak the lines, then gather speech."""
        return cls(
            lines=list(lines),
            hangup=False,
            speech_timeout=settings.speech_timeout,
            timeout=settings.gather_timeout,
            fallback_prompts=fallback_prompts or [],
            fallback_timeout=settings.fallback_gather_timeout,
            final_line=final_line,
        )

    @classmethod
    def end_call(cls, *lines: str) -> "ResponseDirective":
        """Speak the lines, then hang up."""
        return cls(lines=list(lines), hangup=True)


class TwiMLRenderer:
    """Renders ResponseDirectives as Twilio TwiML."""

    def __init__(self, voice: Optional[str] = None):
        self.voice = voice or settings.coach_voice

    def _say(self, text: str, indent: str = "    ") -> str:
        voice = escape(self.voice, {'"': "&quot;"})
        return f'{indent}<Say voice="{voice}">{escape(text)}</Say>'

    def _gather(self, action_url: str, speech_timeout: str, timeout: int) -> str:
        action = escape(action_url, {'"': "&quot;"})
        return (
            f'    <Gather input="speech" action="{action}" method="POST" '
            f'speechTimeout="{speech_timeout}" timeout="{timeout}" finishOnKey="#" language="en-US"/>'
        )

    def render(self, directive: ResponseDirective, action_url: str = "") -> str:
        """
        Generate TwiML XML for a directive.

        Args:
            directive: What to say and do
            action_url: URL Twilio posts gathered speech to

        Returns:
            TwiML XML string
        """
        parts = [self._say(line) for line in directive.lines if line]

        if directive.hangup:
            parts.append("    <Hangup/>")
        else:
            parts.append(self._gather(action_url, directive.speech_timeout, directive.timeout))
            for prompt in directive.fallback_prompts:
                parts.append(self._say(prompt))
                parts.append(
                    self._gather(action_url, directive.speech_timeout, directive.fallback_timeout)
                )
            if directive.final_line:
                parts.append(self._say(directive.final_line))
                parts.append("    <Hangup/>")

        body = "\n".join(parts)
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
{body}
</Response>"""
