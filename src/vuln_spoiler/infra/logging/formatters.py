from __future__ import annotations

import logging
from datetime import datetime, timezone

from pythonjsonlogger.json import JsonFormatter


# Structured fields shown inline on the console, in this order.
CONSOLE_FIELDS = ("repo", "sha", "count", "severity", "vulnerability_type", "issue_url", "error")


class JSONFormatter(JsonFormatter):
    """JSON formatter for run logs.

    One JSON object per record. Structured fields passed via logging extra
    are written as top-level keys next to level, logger, message and time.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['time'] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['message'] = record.getMessage()


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Appends the well-known structured fields as ``key=value`` pairs.
    """

    def __init__(self) -> None:
        super().__init__(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in CONSOLE_FIELDS
            if getattr(record, key, None) is not None
        ]
        if pairs:
            line = f"{line} ({', '.join(pairs)})"
        return line
