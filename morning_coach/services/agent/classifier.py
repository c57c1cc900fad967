"""Utterance classification: voicemail, end of session, tool requests, commitments.

All predicates are pure and total: any string, including an empty one, gets
an answer and nothing raises.
"""
import logging
from typing import Optional

from morning_coach.services.agent.constants import (
    COMMITMENT_PATTERN,
    END_INTENT_PATTERNS,
    NUMERIC_FRAGMENT_PATTERNS,
    PHONE_NUMBER_PATTERNS,
    TOOL_TRIGGER_PATTERN,
    VOICEMAIL_PHRASE_PATTERNS,
)

logger = logging.getLogger(__name__)


def voicemail_reason(text: Optional[str]) -> Optional[str]:
    """
    Explain why an utterance looks like voicemail.

    Returns:
        "phrase", "phone_number" or "numeric_fragment" for the first rule that
        matches, None if the utterance looks like a live human.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return None

    if any(pattern.search(trimmed) for pattern in VOICEMAIL_PHRASE_PATTERNS):
        return "phrase"
    if any(pattern.match(trimmed) for pattern in PHONE_NUMBER_PATTERNS):
        return "phone_number"
    if any(pattern.match(trimmed) for pattern in NUMERIC_FRAGMENT_PATTERNS):
        return "numeric_fragment"
    return None


def is_voicemail(text: Optional[str]) -> bool:
    """Check whether an utterance came from voicemail or an IVR."""
    reason = voicemail_reason(text)
    if reason:
        logger.info(f"[CLASSIFIER] Voicemail detected ({reason}): '{(text or '').strip()}'")
        return True
    return False


def is_end_intent(text: Optional[str]) -> bool:
    """Check whether the caller is closing the session."""
    trimmed = (text or "").strip()
    return any(pattern.search(trimmed) for pattern in END_INTENT_PATTERNS)


def needs_tool(text: Optional[str]) -> bool:
    """Check whether an utterance asks for a task or calendar action."""
    return bool(TOOL_TRIGGER_PATTERN.search(text or ""))


def is_commitment(text: Optional[str]) -> bool:
    """Check whether an utterance states a commitment worth recording."""
    return bool(COMMITMENT_PATTERN.search(text or ""))
