from __future__ import annotations

from openai import OpenAI

from .types import LLMResponse, TokenUsage


class OpenAIAdapter:
    """OpenAI Responses API adapter (gpt-4o, o3, etc.).

    The Responses API has no assistant prefill, so ``prefill`` is ignored and
    the prompt alone must ask for JSON output.
    """

    def __init__(self, model: str, api_key: str, *, max_retries: int = 2) -> None:
        self.model = model
        self._client = OpenAI(api_key=api_key, max_retries=max_retries)

    def run(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 2048,
        prefill: str = "",
    ) -> LLMResponse:
        response = self._client.responses.create(
            model=self.model,
            input=prompt,
            max_output_tokens=max_output_tokens,
        )
        usage = None
        u = response.usage
        if u is not None:
            iu = u.input_tokens
            ou = u.output_tokens
            tt = u.total_tokens if u.total_tokens is not None else (iu or 0) + (ou or 0)
            usage = TokenUsage(input_tokens=iu, output_tokens=ou, total_tokens=tt)
        return LLMResponse(text=response.output_text or "", usage=usage)
