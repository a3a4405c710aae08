from __future__ import annotations

from .anthropic_adapter import AnthropicAdapter
from .interface import CompletionAdapter
from .openai_adapter import OpenAIAdapter


def get_adapter(provider: str, model: str, api_key: str, *, max_retries: int = 2) -> CompletionAdapter:
    """Factory that returns an adapter for the requested provider/model."""
    if provider == "anthropic":
        return AnthropicAdapter(model, api_key, max_retries=max_retries)
    if provider == "openai":
        return OpenAIAdapter(model, api_key, max_retries=max_retries)
    raise ValueError("provider must be 'anthropic' or 'openai'")
