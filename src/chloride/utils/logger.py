"""
Logging setup for Chloride using Python's standard logging
with JSON formatting for structured logs.

Log destinations:
- Console (stderr): Human-readable format for debugging
- {log_dir}/client.jsonl: JSON format for client activity (when log_dir is set)
- {log_dir}/errors.jsonl: JSON format for error tracking (when log_dir is set)
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import re
import sys
import uuid

from pathlib import Path
from typing import Any

from pythonjsonlogger import json as jsonlogger

from chloride.core.constants import (
    CORRELATION_ID_LENGTH,
    LOG_BACKUP_COUNT_CLIENT,
    LOG_BACKUP_COUNT_ERRORS,
    LOG_MAX_SIZE,
)

# PII / credential redaction patterns
REDACTION_PATTERNS = [
    (r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b", "[EMAIL]"),
    (r"\bBearer\s+[A-Za-z0-9._~+/=-]+", "Bearer [TOKEN]"),
    (r"\b(password|secret|token)\s*[:=]\s*\S+", "[REDACTED]"),
]


class ActivityFilter(logging.Filter):
    """Filter to allow all INFO level logs for client activity"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.INFO


class ErrorFilter(logging.Filter):
    """Filter to only allow ERROR and CRITICAL logs"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to log levels and standardizes format.
    Format: HH:MM:SS [LEVEL] logger_name - message
    """

    # ANSI color codes
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        level_fmt = f"[{record.levelname}]"
        color = self.LEVEL_COLORS.get(record.levelno)
        if color:
            level_fmt = f"{color}{level_fmt}{self.RESET}"

        record.asctime = self.formatTime(record, "%H:%M:%S")
        line = f"{record.asctime} {level_fmt} {record.name} - {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    name: str = "chloride",
    debug: bool | None = None,
    log_dir: str | Path | None = None,
) -> logging.Logger:
    """
    Set up logging with a console handler and optional JSON file handlers.

    Args:
        name: Logger name
        debug: Enable debug logging (overrides DEBUG env var)
        log_dir: Directory for JSON log files (overrides CHLORIDE_LOG_DIR env var)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # Capture all, filter at handler level
    logger.handlers = []
    logger.propagate = False

    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
    if log_dir is None:
        log_dir = os.getenv("CHLORIDE_LOG_DIR") or None

    # --- Console Handler (Human-readable) ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    logger.addHandler(console_handler)

    if log_dir is None:
        return logger

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # --- Activity Log Handler (JSON) ---
    activity_handler = logging.handlers.RotatingFileHandler(
        log_path / "client.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_CLIENT,
        encoding="utf-8",
    )
    activity_handler.setLevel(logging.INFO)
    activity_handler.addFilter(ActivityFilter())
    activity_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(message)s %(correlation_id)s",
            timestamp=True,
        )
    )
    logger.addHandler(activity_handler)

    # --- Error Log Handler (JSON) ---
    error_handler = logging.handlers.RotatingFileHandler(
        log_path / "errors.jsonl",
        maxBytes=LOG_MAX_SIZE,
        backupCount=LOG_BACKUP_COUNT_ERRORS,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorFilter())
    error_handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            timestamp=True,
        )
    )
    logger.addHandler(error_handler)

    return logger


def redact(text: str) -> str:
    """Redact emails, bearer tokens and credential assignments from text."""
    if not text:
        return text

    redacted = text
    for pattern, replacement in REDACTION_PATTERNS:
        redacted = re.sub(pattern, replacement, redacted)
    return redacted


class ClientLogger:
    """
    High-level logging interface for Chloride.
    Wraps standard Python logging with redaction and a correlation ID.
    """

    def __init__(self, name: str = "chloride"):
        self.logger = setup_logging(name)
        self.correlation_id = uuid.uuid4().hex[:CORRELATION_ID_LENGTH]

    def configure(self, debug: bool | None = None, log_dir: str | Path | None = None) -> None:
        """Re-install handlers, e.g. once settings have been loaded."""
        self.logger = setup_logging(self.logger.name, debug=debug, log_dir=log_dir)

    def _enrich_context(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        kwargs.setdefault("correlation_id", self.correlation_id)
        return kwargs

    def debug(self, message: str, **kwargs: Any) -> None:
        """Debug level logging"""
        self.logger.debug(redact(message), extra=self._enrich_context(kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Info level logging"""
        self.logger.info(redact(message), extra=self._enrich_context(kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Warning level logging"""
        self.logger.warning(redact(message), extra=self._enrich_context(kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Error level logging with optional exception info"""
        self.logger.error(redact(message), extra=self._enrich_context(kwargs), exc_info=exc_info)


# Global logger instance
logger = ClientLogger()
