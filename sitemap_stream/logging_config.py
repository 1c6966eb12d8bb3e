"""
Structured logging configuration for the sitemap crawler.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional
import json

ROOT_LOGGER = "sitemap_stream"

# Context fields callers attach through ``extra=``
EXTRA_FIELDS = ("url", "sitemap", "pages", "children", "http_code")


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ReadableFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "") if self.use_color else ""
        reset = self.RESET if self.use_color else ""

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"{color}[{timestamp}] [{record.levelname:8}]{reset} {record.name}: {record.getMessage()}"

        extras = []
        for field in EXTRA_FIELDS:
            if not hasattr(record, field):
                continue
            value = getattr(record, field)
            # Truncate long URLs
            if isinstance(value, str) and len(value) > 60:
                value = value[:57] + "..."
            extras.append(f"{field}={value}")

        if extras:
            base += f" [{', '.join(extras)}]"

        if record.exc_info:
            base += f"\n{self.formatException(record.exc_info)}"

        return base


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for the crawler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter for machine parsing
        log_file: Optional file path for log output

    Returns:
        Package root logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console output goes to stderr so stdout stays clean for page listings
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG)

    if json_format:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(ReadableFormatter(use_color=sys.stderr.isatty()))

    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
