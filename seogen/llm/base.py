"""LLM provider protocol and response parsing helpers."""

import json
import re
from typing import Any, Protocol


class LLMProvider(Protocol):
    """Protocol for LLM backends (OpenAI, Anthropic)."""

    def complete(self, prompt: str, system: str | None = None, **kwargs: Any) -> str:
        """Return raw text completion."""
        ...

    def complete_json(self, prompt: str, system: str | None = None, **kwargs: Any) -> Any:
        """Return the completion parsed as JSON (object or array)."""
        ...


JSON_INSTRUCTION = "Respond with valid JSON only. No markdown, no code fence, no explanation."

_FENCE_OPEN = re.compile(r"^```\w*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


def parse_json_response(raw: str) -> Any:
    """Parse a model reply as JSON, tolerating a surrounding markdown fence."""
    text = raw.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text)
        text = _FENCE_CLOSE.sub("", text)
    return json.loads(text)
