"""OpenAI chat completion provider."""

from typing import Any

from openai import OpenAI

from seogen.llm.base import JSON_INSTRUCTION, parse_json_response


class OpenAIProvider:
    """OpenAI chat completion with JSON output support."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
    ):
        self._client = OpenAI(api_key=api_key)
        self._model = model

    def complete(self, prompt: str, system: str | None = None, **kwargs: Any) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        # OpenAI errors propagate; stage code decides what counts as a failure
        response = self._client.chat.completions.create(
            model=kwargs.pop("model", None) or self._model,
            messages=messages,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    def complete_json(self, prompt: str, system: str | None = None, **kwargs: Any) -> Any:
        raw = self.complete(f"{prompt}\n\n{JSON_INSTRUCTION}", system=system, **kwargs)
        return parse_json_response(raw)
