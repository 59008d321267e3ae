"""Structured logging setup for scopestore.

Uses structlog for JSON-structured logging with component names,
log levels, and timestamps in every log entry.
"""

import logging
import sys

import structlog


def configure_logging(json_output: bool = True, level: str = "INFO") -> None:
    """Configure structlog for scopestore.

    Args:
        json_output: If True (default), render logs as JSON.
                     If False, use console-friendly output for development.
        level: Minimum level name to emit (DEBUG, INFO, WARNING, ERROR).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    level_num = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, workspace: str | None = None) -> structlog.BoundLogger:
    """Get a logger bound with component and optional workspace.

    Args:
        component: Name of the component requesting the logger.
        workspace: Optional workspace directory for tracing per-project calls.

    Returns:
        A structlog BoundLogger with component and workspace bound.
    """
    logger = structlog.get_logger()
    logger = logger.bind(component=component)
    if workspace:
        logger = logger.bind(workspace=workspace)
    return logger
