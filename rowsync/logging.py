"""Structured logging configuration."""

import logging
import sys
from datetime import datetime, timezone

# Attributes a caller may attach through ``extra=`` that are rendered as key=value pairs
CONTEXT_FIELDS = ("run_id", "row", "channel_id")


class StructuredFormatter(logging.Formatter):
    """Single-line formatter: ``timestamp | LEVEL | logger | message [key=value ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        level = record.levelname.ljust(8)
        message = record.getMessage()

        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]

        log_line = f"{timestamp} | {level} | {record.name} | {message}"
        if context:
            log_line += " | " + " ".join(context)

        if record.exc_info:
            log_line += "\n" + self.formatException(record.exc_info)

        return log_line


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for the service.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(StructuredFormatter())

    root_logger.addHandler(console_handler)

    for noisy in ("uvicorn.access", "httpx", "httpcore", "apscheduler.executors"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
