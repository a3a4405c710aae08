from __future__ import annotations

import logging
from pathlib import Path

from dependency_injector.resources import Resource

from .handlers import build_json_file_handler, build_human_console_handler


class RunLogger(Resource):
    """Structured logger for one monitoring run.

    Writes every event of the run to ``<logs_dir>/<run_id>.jsonl`` and
    optionally mirrors it to the console.
    """

    def init(
        self,
        *,
        run_id: str | None = None,
        logs_dir: Path,
        logger_name: str = "vuln_spoiler",
        console_output: bool = False,
        level: str = "INFO",
    ) -> "RunLogger":
        """Initialize handlers for the run.

        Args:
            run_id: Run identifier (optional, if provided creates JSONL file handler)
            logs_dir: Directory to store log files
            logger_name: Logger name
            console_output: Whether to enable console output
            level: Logging level (DEBUG, INFO, WARNING, ERROR)

        Returns:
            Self for dependency_injector Resource pattern
        """
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO

        self._logger = logging.getLogger(logger_name)
        self._logger.setLevel(numeric_level)
        self._logger.propagate = False

        self._logger.handlers.clear()
        self._handlers: list[logging.Handler] = []
        self.log_file: Path | None = None

        if run_id:
            self.log_file = logs_dir / f"{run_id}.jsonl"
            file_handler = build_json_file_handler(self.log_file, level=numeric_level)
            self._logger.addHandler(file_handler)
            self._handlers.append(file_handler)

        if console_output:
            console_handler = build_human_console_handler(level=numeric_level)
            self._logger.addHandler(console_handler)
            self._handlers.append(console_handler)

        return self

    def shutdown(self, resource: "RunLogger") -> None:
        """Flush and close all handlers so the log file is complete on disk."""
        for handler in self._handlers:
            handler.flush()
            handler.close()
        self._logger.handlers.clear()

    def _log(self, level: int, event: str, fields: dict, exc_info: bool = False) -> None:
        # Every event carries its name under "type".
        fields.setdefault("type", event)
        self._logger.log(level, event, extra=fields, exc_info=exc_info)

    def debug(self, event: str, **fields) -> None:
        self._log(logging.DEBUG, event, fields)

    def info(self, event: str, **fields) -> None:
        self._log(logging.INFO, event, fields)

    def warning(self, event: str, **fields) -> None:
        self._log(logging.WARNING, event, fields)

    def error(self, event: str, exc_info: bool = False, **fields) -> None:
        """Log an error event; pass ``exc_info=True`` inside an except block."""
        self._log(logging.ERROR, event, fields, exc_info=exc_info)

    def exception(self, event: str, **fields) -> None:
        self._log(logging.ERROR, event, fields, exc_info=True)
