"""scopestore utilities — logging and shared helpers."""

from scopestore.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
