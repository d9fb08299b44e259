"""
Structured logging configuration using structlog.

Calculation runs log their minor-unit ledgers as key/value pairs so that a
client/server mismatch can be traced from the log stream alone.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

    from core.config import LoggingSettings


def configure_logging(
    *,
    json_format: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structlog: JSON lines when json_format is set, plain console otherwise."""
    level = logging.getLevelName(log_level.upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=False,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def configure_from_settings(settings: LoggingSettings) -> None:
    """Configure logging from the LOG_* settings section."""
    configure_logging(json_format=settings.json_format, log_level=settings.level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger for a module; pass __name__."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: object) -> None:
    """
    Bind context variables for the current order or request.

    Bound keys (e.g. order_ref, calculation_source) are merged into every
    subsequent log line until cleared.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific context variables."""
    structlog.contextvars.unbind_contextvars(*keys)
