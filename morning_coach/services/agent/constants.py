"""Pattern tables for utterance classification and insight extraction.

Each table is evaluated top to bottom; add a pattern to extend a classifier.
Utterances are trimmed and matched case-insensitively.
"""
import re

_I = re.IGNORECASE

# Automated greetings and answering-machine phrasing
VOICEMAIL_PHRASE_PATTERNS = [
    re.compile(p, _I)
    for p in [
        r"not available.*leave.*message",
        r"can'?t come to.*phone",
        r"leave.*message.*after.*tone",
        r"press.*for.*delivery.*options",
        r"nothing.*recorded.*hang.*up",
        r"message.*after.*tone.*hang.*up",
        r"simply.*hang.*up",
        r"your.*message.*after.*beep",
        r"please.*leave.*your.*name",
        r"mailbox.*full",
        r"unavailable.*right.*now",
        r"^you'?ve reached",
        r"^this is.*(voicemail|message)",
        r"^hello.*not here",
        r"^sorry.*missed.*call",
        r"^at the tone",
        r"^please record",
        r"when you have finished recording.*hang up",
        r"you may hang up",
        r"recording.*hang up",
    ]
]

# Callback numbers read back by the carrier, e.g. "858 386 6200" or "858-386-6200."
PHONE_NUMBER_PATTERNS = [
    re.compile(r"^\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\.?$"),
]

# Partial digits read out before anyone speaks, e.g. "866 200." or "866200."
NUMERIC_FRAGMENT_PATTERNS = [
    re.compile(r"^\d{2,4}\s*\d{2,4}\.?$"),
    re.compile(r"^\d{3,10}\.?$"),
    re.compile(r"^\d+[\s.]*\d*\.?$"),
]

END_INTENT_PATTERNS = [
    re.compile(p, _I)
    for p in [
        r"^(no|nothing else|that'?s it|i'?m done|all set|wrap up|finished|bye|goodbye)[\s,.!]*(thanks|thank you)?[.!]*$",
        r"^(good|ok|okay|sounds good|alright|perfect)[\s,.!]*(bye|goodbye|thanks|thank you)?[.!]*$",
        r"^(thanks|thank you|appreciate it)[\s,.!]*(bye|goodbye)?[.!]*$",
        r"end (the )?call|hang up|gotta go|have to go",
        r"see you tomorrow|talk tomorrow|tomorrow",
    ]
]

# Requests that should go through the structured tool path
TOOL_TRIGGER_PATTERN = re.compile(r"\b(add|create|schedule|remind|put.*calendar|todo)\b", _I)

COMMITMENT_PATTERN = re.compile(r"\b(will|going to|plan to|commit|promise)\b", _I)

# Insight extraction
DURATION_PATTERN = re.compile(r"\b(\d+)\s*(minutes?|mins?|hours?|hrs?)\b", _I)
ACTION_PHRASE_PATTERN = re.compile(r"\b(start|begin|do|work on|focus on)\s+([^.!?]*)", _I)

MAX_PRIORITIES = 3

# (pattern, mood, energy level); first match wins
MOOD_RULES = [
    (
        re.compile(
            r"\b(good|great|excellent|awesome|ready|excited|energized|yes|absolutely|perfect)\b", _I
        ),
        "Positive",
        "High",
    ),
    (
        re.compile(
            r"\b(tired|exhausted|drained|slow|difficult|hard|struggle|struggling|overwhelmed|no|maybe|unsure)\b",
            _I,
        ),
        "Low",
        "Low",
    ),
    (
        re.compile(r"\b(ok|okay|fine|decent|normal|alright|sure)\b", _I),
        "Neutral",
        "Medium",
    ),
    (
        re.compile(r"\b(focused|concentrate|priority|important|urgent)\b", _I),
        "Focused",
        "High",
    ),
]

DEFAULT_MOOD = "Neutral"
DEFAULT_ENERGY_LEVEL = "Medium"
DEFAULT_NOTES = "Quick check-in completed"

ENDING_MESSAGES = [
    "Good session. Execute those plans.",
    "Solid check-in. Make it happen.",
    "Plans set. Time to work.",
    "Clear priorities. Go execute.",
    "Session logged. Get after it.",
]

# Spoken lines
VOICEMAIL_CLOSING = "Voicemail detected. Call back when you can actually talk."
FALLBACK_REPLY = "Let's stay focused. What's your main priority?"
FALLBACK_CLOSING = "Session complete. Talk tomorrow!"
FALLBACK_OPENER = "Morning. Time to work. What's first?"
NO_SPEECH_REPROMPT = "I didn't catch that. What are you working on first?"
OPENER_REPROMPT = "Still there? Stop wasting time. What are you doing first?"
OPENER_FINAL_LINE = "Not responding counts as avoidance. Call me back when you are ready to work."
TURN_REPROMPT = "Still with me? What's next?"
TURN_FINAL_LINE = "Call back when ready."

# Gateway call statuses
TERMINAL_CALL_STATUSES = {"completed", "no-answer", "failed", "busy", "canceled"}
MISSED_CALL_STATUSES = {"no-answer", "failed", "busy", "canceled"}
