"""Structured logging configuration for monster-forge.

Logging uses structlog so that derivation events carry the creature name,
directive tag and include reference as structured fields rather than
formatted strings. Development output is human-readable; ``json_format``
switches to JSON lines for machine consumption.

Nothing is configured on import. A host application calls
``configure_logging`` (or ``configure_logging_from_settings``) once at
startup; until then structlog's defaults apply.

Example:
    >>> from monster_forge.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Derived creature", creature="Goblin", challenge="1/4")
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from monster_forge.core.config import Settings


_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = "monster_forge"
    return event_dict


def _processors(json_format: bool) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        return [*shared, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        *shared,
        structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback),
    ]


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure application-wide logging.

    Events go to stderr so that stdout stays free for rendered stat blocks.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output logs as JSON lines.
        log_file: Optional path to a log file for the standard library
            handlers.

    Example:
        >>> configure_logging(level="DEBUG", json_format=True)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format=_LOG_FORMAT, level=numeric_level, stream=sys.stderr, force=True)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from application settings.

    ``debug`` forces the DEBUG level, which logs every applied directive.

    Args:
        settings: Settings to use; defaults to ``get_settings()``.
    """
    if settings is None:
        from monster_forge.core.config import get_settings

        settings = get_settings()
    level = "DEBUG" if settings.debug else settings.log_level
    configure_logging(level=level, json_format=settings.log_json)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional name for the logger (typically __name__).

    Returns:
        A structlog BoundLogger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Applying directive", directive="walk")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    The interpreter binds the creature being derived so that every event
    emitted during its derivation can be traced back to it.

    Example:
        >>> bind_context(creature="Goblin")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific keys from the logging context.

    Example:
        >>> unbind_context("creature")
    """
    structlog.contextvars.unbind_contextvars(*keys)


__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "unbind_context",
]
