from __future__ import annotations

from ..ports import RunLogStorePort


class LogsUseCase:
    def __init__(self, *, log_store: RunLogStorePort) -> None:
        self._log_store = log_store

    def execute(self, run_id: str | None, verbose: bool) -> list[str]:
        if run_id:
            return self._log_store.read_log(run_id, verbose)
        return self._log_store.summarize_all(verbose)
