"""Shared utilities: logging, message formatting and warning types."""

from modelinsight.utils.formatting import format_message
from modelinsight.utils.logging import configure_logging, get_logger, log_context

__all__ = [
    "configure_logging",
    "format_message",
    "get_logger",
    "log_context",
]
