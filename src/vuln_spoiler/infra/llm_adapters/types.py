from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


# Public provider literal
Provider = Literal["anthropic", "openai"]


@dataclass
class TokenUsage:
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass
class LLMResponse:
    text: str
    usage: TokenUsage | None = None
