from __future__ import annotations

import anthropic
from anthropic.types import MessageParam

from .types import LLMResponse, TokenUsage


class AnthropicAdapter:
    """Anthropic Messages API adapter (Claude Sonnet, etc.).

    - Supports assistant prefill: the prefill is sent as a partial
      assistant turn and prepended to the returned text
    - Retries transient failures through the SDK's ``max_retries``
    """

    def __init__(self, model: str, api_key: str, *, max_retries: int = 2) -> None:
        self.model = model
        self._client = anthropic.Anthropic(api_key=api_key, max_retries=max_retries)

    def run(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 2048,
        prefill: str = "",
    ) -> LLMResponse:
        messages: list[MessageParam] = [{"role": "user", "content": prompt}]
        if prefill:
            messages.append({"role": "assistant", "content": prefill})

        message = self._client.messages.create(
            model=self.model,
            max_tokens=max_output_tokens,
            messages=messages,
        )
        # message.content is a list of content blocks; we only join text blocks
        texts: list[str] = []
        for block in message.content:
            if getattr(block, "type", None) == "text":
                texts.append(block.text)

        u = message.usage
        iu = u.input_tokens if u is not None else None
        ou = u.output_tokens if u is not None else None
        tt = (iu or 0) + (ou or 0) if (iu is not None or ou is not None) else None
        usage = TokenUsage(input_tokens=iu, output_tokens=ou, total_tokens=tt)
        return LLMResponse(text=prefill + "".join(texts), usage=usage)
