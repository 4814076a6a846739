"""
drecipe logging - structured logging for the action engine.

Every module logs through ``get_logger(__name__)``. Actions bind their kind
and name with ``LogContext`` for the duration of a run, so attempt-level
lines from the retry loop carry the action that produced them.

Processor chain::

    TimeStamper(iso) -> merge_contextvars -> add_log_level -> service
        -> JSONRenderer | ConsoleRenderer

Records go to stderr; stdout belongs to CLI output.

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> with LogContext(action="assert", name="pool-online"):
    ...     logger.info("attempt_failed", attempt=3)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "drecipe"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "drecipe",
) -> None:
    """Configure structlog for the engine and the CLI.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines when True, console output when False,
            JSON unless stderr is a tty when None
        service: Value of the ``service`` field on every record
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_service,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Structured logger tagged with ``logger_name``.

    Resolved lazily, so module-level loggers follow a later
    ``configure_logging()``.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


class LogContext:
    """Bind context variables for the duration of a block.

    Example:
        with LogContext(action="label", name="tag-pools"):
            logger.info("label_started")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.unbind_contextvars(*self._context.keys())


__all__ = ["configure_logging", "get_logger", "LogContext"]
