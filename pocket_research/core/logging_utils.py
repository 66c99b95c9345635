from __future__ import annotations

import logging
import sys
import uuid

from loguru import logger as loguru_logger

# LogRecord attributes that are never forwarded as structured extras
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> "
    "<cyan>{name}</cyan> {message} <dim>{extra}</dim>"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records (with their ``extra`` fields) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level_to_use: int | str
        try:
            level_to_use = loguru_logger.level(record.levelname).name
        except ValueError:
            level_to_use = record.levelno

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in _STANDARD_FIELDS
        }

        loguru_logger.bind(logger_name=record.name, **extra).opt(
            depth=6, exception=record.exc_info
        ).log(level_to_use, record.getMessage())


def setup_json_logging(
    level: str = "INFO",
    *,
    json_logs: bool = True,
    log_file: str | None = None,
    max_file_size: str = "20 MB",
    retention: str = "14 days",
) -> None:
    """Route stdlib logging into loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Emit serialized JSON lines instead of the console format
        log_file: Optional log file path (always JSON)
        max_file_size: Rotation size for the log file (loguru format)
        retention: Retention period for rotated files (loguru format)
    """
    lvl = level.upper()
    loguru_logger.remove()

    if json_logs:
        loguru_logger.add(sys.stderr, level=lvl, serialize=True, backtrace=True)
    else:
        loguru_logger.add(sys.stderr, level=lvl, format=_CONSOLE_FORMAT, colorize=None)

    if log_file:
        loguru_logger.add(
            log_file,
            level=lvl,
            serialize=True,
            rotation=max_file_size,
            retention=retention,
            compression="gz",
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, lvl, logging.INFO))
    root.addHandler(InterceptHandler())

    for noisy_logger in ("httpx", "httpcore", "peewee"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing one command across log lines."""
    return uuid.uuid4().hex[:12]


def truncate_log_content(content: str | None, max_length: int = 200) -> str | None:
    """Truncate large payloads (raw JSON, HTML) before logging them."""
    if not content or len(content) <= max_length:
        return content
    return content[:max_length] + "... [truncated]"


__all__ = [
    "InterceptHandler",
    "generate_correlation_id",
    "setup_json_logging",
    "truncate_log_content",
]
