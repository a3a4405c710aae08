from .types import Provider, TokenUsage, LLMResponse
from .interface import CompletionAdapter
from .anthropic_adapter import AnthropicAdapter
from .openai_adapter import OpenAIAdapter
from .factory import get_adapter

__all__ = [
    "Provider",
    "TokenUsage",
    "LLMResponse",
    "CompletionAdapter",
    "AnthropicAdapter",
    "OpenAIAdapter",
    "get_adapter",
]
