"""Per-call conversation history used for reply generation."""
from typing import Dict, List

Message = Dict[str, str]


class ContextStore:
    """
    Ordered message history per call, kept apart from session metadata.

    Every history starts with exactly one system entry holding the coach
    persona, followed by the turns in order.
    """

    def __init__(self, system_prompt: str):
        self.system_prompt = system_prompt
        self._histories: Dict[str, List[Message]] = {}

    def _new_history(self) -> List[Message]:
        return [{"role": "system", "content": self.system_prompt}]

    async def reset(self, call_sid: str, opener: str = "") -> List[Message]:
        """Start a fresh history for a call, optionally seeded with the opener."""
        history = self._new_history()
        if opener:
            history.append({"role": "assistant", "content": opener})
        self._histories[call_sid] = history
        return list(history)

    async def get(self, call_sid: str) -> List[Message]:
        """Get a copy of the history for a call."""
        if call_sid not in self._histories:
            self._histories[call_sid] = self._new_history()
        return list(self._histories[call_sid])

    async def append(self, call_sid: str, role: str, content: str) -> None:
        if role not in ("user", "assistant"):
            raise ValueError(f"Cannot append a '{role}' entry after the system prompt")
        if call_sid not in self._histories:
            self._histories[call_sid] = self._new_history()
        self._histories[call_sid].append({"role": role, "content": content})

    async def clear(self, call_sid: str) -> None:
        self._histories.pop(call_sid, None)

    async def has(self, call_sid: str) -> bool:
        return call_sid in self._histories

    def teardown(self) -> None:
        self._histories.clear()
