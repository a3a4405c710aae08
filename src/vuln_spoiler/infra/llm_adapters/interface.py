from __future__ import annotations

from typing import Protocol, runtime_checkable

from .types import LLMResponse


@runtime_checkable
class CompletionAdapter(Protocol):
    """Minimal interface for a single-turn text completion."""

    def run(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 2048,
        prefill: str = "",
    ) -> LLMResponse:
        """Run a completion and return normalized text + token usage.

        When ``prefill`` is given and the provider supports assistant
        prefill, the returned text starts with it.
        """
        raise NotImplementedError
