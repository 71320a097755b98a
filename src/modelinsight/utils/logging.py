"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog

DEFAULT_LEVEL = "WARNING"


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        return [
            *shared,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [*shared, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def _apply(log_level: int, json_output: bool) -> None:
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging for an application using modelinsight.

    Until this is called, modelinsight logs warnings and errors only, to
    stderr, so that debug events never mix with printed results.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output logs as JSON.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    _apply(log_level, json_output)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Applies the quiet library defaults if logging has not been configured.

    Args:
        name: Logger name (typically __name__ of the module).
    """
    if not structlog.is_configured():
        _apply(getattr(logging, DEFAULT_LEVEL), json_output=False)
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key-value pairs to every log event emitted inside the block.

    Example:
        with log_context(model_class="MixedLMResults"):
            log.debug("Extracted parts")  # includes model_class
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
