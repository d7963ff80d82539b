"""Anthropic messages provider."""

from typing import Any

from anthropic import Anthropic

from seogen.llm.base import JSON_INSTRUCTION, parse_json_response


class AnthropicProvider:
    """Anthropic chat completion with JSON output support."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-3-5-sonnet-20241022",
    ):
        self._client = Anthropic(api_key=api_key)
        self._model = model

    def complete(self, prompt: str, system: str | None = None, **kwargs: Any) -> str:
        params: dict[str, Any] = {
            "model": kwargs.get("model") or self._model,
            "max_tokens": kwargs.get("max_tokens", 4096),
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            params["system"] = system
        response = self._client.messages.create(**params)
        return response.content[0].text if response.content else ""

    def complete_json(self, prompt: str, system: str | None = None, **kwargs: Any) -> Any:
        raw = self.complete(f"{prompt}\n\n{JSON_INSTRUCTION}", system=system, **kwargs)
        return parse_json_response(raw)
