from __future__ import annotations

from ..core.domain.exceptions import ClassificationError
from ..core.domain.models import CommitRecord, Verdict
from ..core.domain.prompt import build_prompt
from ..core.ports import LoggerPort
from ..core.services import VerdictParser
from .llm_adapters import CompletionAdapter, get_adapter


JSON_PREFILL = "{"


class LLMClassifier:
    """Classification oracle backed by an LLM completion endpoint."""

    def __init__(
        self,
        *,
        provider: str,
        model: str,
        api_key: str,
        logger: LoggerPort,
        parser: VerdictParser,
        max_output_tokens: int = 2048,
        max_retries: int = 2,
    ) -> None:
        self._provider = provider
        self._model = model
        self._api_key = api_key
        self._logger = logger
        self._parser = parser
        self._max_output_tokens = max_output_tokens
        self._max_retries = max_retries
        self._adapter: CompletionAdapter | None = None

    def classify(self, commit: CommitRecord) -> Verdict:
        prompt = build_prompt(commit=commit)
        self._logger.info(
            "llm_input",
            type="llm_input",
            provider=self._provider,
            model=self._model,
            sha=commit.sha,
            prompt_len=len(prompt),
        )

        try:
            resp = self._get_adapter().run(
                prompt,
                max_output_tokens=self._max_output_tokens,
                prefill=JSON_PREFILL,
            )
        except Exception as e:
            raise ClassificationError(f"{self._provider} request failed for {commit.short_sha}: {e}") from e

        usage = resp.usage
        if usage is not None:
            self._logger.info(
                "llm_usage",
                type="llm_usage",
                provider=self._provider,
                model=self._model,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                total_tokens=usage.total_tokens,
            )

        self._logger.debug(
            "llm_output",
            type="llm_output",
            sha=commit.sha,
            raw_text_len=len(resp.text),
            raw_text=resp.text,
        )

        raw = self._parser.decode(resp.text)
        if raw is None:
            self._logger.warning(
                "verdict_unparseable",
                type="verdict_unparseable",
                sha=commit.sha,
                raw_text_len=len(resp.text),
            )
            return Verdict.negative()
        return self._parser.normalize(raw)

    def _get_adapter(self) -> CompletionAdapter:
        if self._adapter is None:
            self._adapter = get_adapter(
                self._provider,
                self._model,
                self._api_key,
                max_retries=self._max_retries,
            )
        return self._adapter
