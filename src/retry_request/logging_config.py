"""Structured logging setup for the retry-request library.

Library modules only call ``structlog.get_logger(__name__)``. Applications
that already configure structlog need nothing from here; the rest can call
:func:`configure_logging` to get the library's retry decisions rendered as
JSON (production) or console lines (development) without touching their
root logger.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.types import EventDict, WrappedLogger

from retry_request.config import settings

LOGGER_NAME = "retry_request"


def add_library_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag events so they can be told apart from the host application's."""
    event_dict.setdefault("library", LOGGER_NAME)
    return event_dict


def configure_logging(
    log_level: Optional[str] = None,
    environment: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Route the library's structlog events to a dedicated handler.

    Args:
        log_level: Level for the ``retry_request`` logger (default: settings.LOG_LEVEL)
        environment: ``production`` selects JSON output (default: settings.ENVIRONMENT)
        stream: Output stream (default: stdout)

    Returns:
        The installed handler. Calling again replaces it rather than
        stacking a second one.
    """
    log_level = log_level or settings.LOG_LEVEL
    environment = environment or settings.ENVIRONMENT
    level = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_library_context,
    ]
    if environment.lower() == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    handler.set_name(LOGGER_NAME)

    library_logger = logging.getLogger(LOGGER_NAME)
    for existing in list(library_logger.handlers):
        if existing.get_name() == LOGGER_NAME:
            library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(level)
    library_logger.propagate = False
    return handler
