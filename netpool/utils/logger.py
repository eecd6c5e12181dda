"""Structured JSON logging with context injection.

Every record gets the request context (request_id, principal, pool_id,
assignment_id, action) and the OpenTelemetry trace context (trace_id,
span_id) attached by ``ContextInjectionFilter``.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Optional

from pythonjsonlogger import jsonlogger

from netpool.config import settings
from netpool.utils.context import get_context, get_trace_context

CONTEXT_FIELDS = (
    "request_id",
    "principal",
    "pool_id",
    "assignment_id",
    "action",
    "trace_id",
    "span_id",
)


class ContextInjectionFilter(logging.Filter):
    """Logging filter that injects context variables into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to log record.

        Args:
            record: Log record to enhance

        Returns:
            True (always include record)
        """
        for key, value in get_context().items():
            setattr(record, key, value)

        for key, value in get_trace_context().items():
            setattr(record, key, value)

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self, log_record: dict, record: logging.LogRecord, message_dict: dict
    ) -> None:
        """Add timestamp, level, logger name and context fields."""
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = record.created

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for non-JSON output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


def setup_logging() -> None:
    """Configure application logging with JSON formatting."""
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.addFilter(ContextInjectionFilter())

    if settings.LOG_FORMAT == "json":
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s",
            timestamp=True,
        )
    else:
        formatter = ColoredConsoleFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


@contextmanager
def log_timer(operation_name: str, logger: Optional[logging.Logger] = None):
    """Context manager to log operation duration.

    Example:
        with log_timer("pool_stats"):
            compute_stats()
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        yield
    finally:
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Operation completed: {operation_name}",
            extra={"operation": operation_name, "duration_ms": round(duration_ms, 2)},
        )
