"""Logging setup for the primer service and the git-flow helper.

JSON lines in production so request logs can be shipped as-is, plain text
everywhere else.
"""
import logging
import json
import sys
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# Attributes passed through ``extra=`` that end up in the JSON body
CONTEXT_FIELDS = (
    "request_id", "method", "path", "client", "status_code", "duration_ms",
    "operation", "command", "returncode", "error",
)


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        for attr in CONTEXT_FIELDS:
            if hasattr(record, attr):
                log_obj[attr] = getattr(record, attr)

        return json.dumps(log_obj, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that adds fixed context to every record.

    Example:
        >>> logger = ContextLogger(base_logger, {"request_id": "abc123"})
        >>> logger.info("Listing items")
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the root logger with a single stream handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use ``JSONFormatter`` instead of the text format
        stream: Where records are written (default stdout)

    Returns:
        The configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(numeric_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger


def get_logger(name: str, context: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """Get a logger, wrapped in a ``ContextLogger`` when context is given.

    Example:
        >>> logger = get_logger(__name__, {"operation": "feature_start"})
        >>> logger.info("Running git flow", extra={"command": "git flow feature start x"})
    """
    logger = logging.getLogger(name)

    if context:
        return ContextLogger(logger, context)

    return logger


class LogTimer:
    """Context manager that logs how long an operation took.

    Example:
        >>> with LogTimer(logger, "list_items"):
        ...     rows = store.list(skip=0, limit=10)
        # Logs: "list_items completed in 0.4ms"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return False

        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {"operation": self.operation, "duration_ms": round(self.duration_ms, 2)}

        if exc_type:
            self.logger.error(
                f"{self.operation} failed after {self.duration_ms:.1f}ms",
                extra=extra,
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            self.logger.info(f"{self.operation} completed in {self.duration_ms:.1f}ms", extra=extra)
        return False
