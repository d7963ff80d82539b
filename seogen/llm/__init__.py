"""LLM adapter layer — OpenAI and Anthropic behind a common protocol."""

from seogen.config import Settings, get_settings
from seogen.llm.anthropic_provider import AnthropicProvider
from seogen.llm.base import LLMProvider, parse_json_response
from seogen.llm.openai_provider import OpenAIProvider


def get_provider(provider_name: str, **kwargs: object) -> LLMProvider:
    """Return the configured LLM provider. provider_name: 'openai' | 'anthropic'."""
    if provider_name.lower() == "anthropic":
        return AnthropicProvider(**kwargs)
    return OpenAIProvider(**kwargs)


def resolve_provider(settings: Settings | None = None) -> LLMProvider:
    """Build the provider named in settings; raises ValueError without an API key."""
    settings = settings or get_settings()
    provider_name = settings.seogen_llm_provider.lower()
    if provider_name == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.seogen_anthropic_model
    else:
        api_key = settings.openai_api_key
        model = settings.seogen_openai_model
    if not api_key:
        raise ValueError(f"API key not configured for provider '{provider_name}'.")
    return get_provider(provider_name, api_key=api_key, model=model)


__all__ = [
    "AnthropicProvider",
    "LLMProvider",
    "OpenAIProvider",
    "get_provider",
    "parse_json_response",
    "resolve_provider",
]
