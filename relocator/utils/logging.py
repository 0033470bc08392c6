"""Structured logging configuration for relocator.

Provides:
- structlog setup with console or JSON rendering
- Context-bound loggers
- A run logger for step-by-step execution tracking
"""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Optional

import structlog


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Output logs as JSON
        include_timestamp: Include timestamps in logs
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None, **context) -> structlog.BoundLogger:
    """Get a logger with optional bound context.

    Args:
        name: Logger name
        **context: Additional context to bind

    Returns:
        structlog logger
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger


class LogContext:
    """Context manager that binds fields to every log line in its block.

    Usage:
        with LogContext(run_id="run-1"):
            logger.info("Resolving element")
    """

    def __init__(self, **context):
        self.context = context
        self._bound = False

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        self._bound = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._bound:
            structlog.contextvars.unbind_contextvars(*self.context.keys())
            self._bound = False


@contextmanager
def log_operation(
    operation: str,
    logger: Optional[structlog.BoundLogger] = None,
    **context,
):
    """Log the start and end of an operation.

    Yields:
        Dict the caller may fill with result fields

    Example:
        with log_operation("resolve", step_id="s1") as op:
            result = await resolver.find(descriptor, dom)
            op["strategy"] = result.strategy
    """
    log = (logger or get_logger()).bind(operation=operation, **context)

    log.debug(f"{operation} started")
    result: dict[str, Any] = {"success": False, "error": None}

    try:
        yield result
        result["success"] = True
        log.debug(f"{operation} completed", **result)
    except Exception as e:
        result["error"] = str(e)
        log.error(f"{operation} failed", **result)
        raise


class RunLogger:
    """Logger specialized for replay run tracking."""

    def __init__(self, run_id: str, total_steps: int = 0):
        self.log = get_logger().bind(component="run", run_id=run_id)
        self.total_steps = total_steps
        self.failures = 0

    def run_started(self, **metadata) -> None:
        self.log.info("Run started", total_steps=self.total_steps, **metadata)

    def run_finished(self, stop_reason: str, duration_ms: int, passed: int, failed: int) -> None:
        level = self.log.info if failed == 0 else self.log.warning
        level(
            "Run finished",
            stop_reason=stop_reason,
            duration_ms=duration_ms,
            passed=passed,
            failed=failed,
        )

    def step_started(self, step_index: int, step_id: str, action: Optional[str] = None) -> None:
        self.log.debug(
            "Step started",
            step_index=step_index,
            step_id=step_id,
            action=action,
        )

    def step_completed(
        self,
        step_index: int,
        step_id: str,
        duration_ms: int,
        strategy: Optional[str] = None,
        confidence: Optional[float] = None,
    ) -> None:
        self.log.debug(
            "Step completed",
            step_index=step_index,
            step_id=step_id,
            duration_ms=duration_ms,
            strategy=strategy,
            confidence=confidence,
        )

    def step_failed(self, step_index: int, step_id: str, error: str) -> None:
        self.failures += 1
        self.log.error(
            "Step failed",
            step_index=step_index,
            step_id=step_id,
            error=error,
        )

    def step_skipped(self, step_index: int, step_id: str, reason: str) -> None:
        self.log.info("Step skipped", step_index=step_index, step_id=step_id, reason=reason)
