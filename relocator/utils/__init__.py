"""Shared utilities."""

from .logging import LogContext, RunLogger, configure_logging, get_logger, log_operation

__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_operation",
    "RunLogger",
]
