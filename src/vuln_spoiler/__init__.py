from .app.main import run_monitor, show_state, logs

__all__ = [
    "run_monitor",
    "show_state",
    "logs",
]

# stdlib logging defaults: attach NullHandler to prevent 'No handler' warnings
import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
