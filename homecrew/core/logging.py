"""Centralized logging configuration for the application.

This module provides:
- Unified logger setup with console and rotating file handlers
- Structured JSON logging with contextual fields
- Request ID context propagation via contextvars
- Helper functions for getting configured loggers
- Error message sanitization for secure logging
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from homecrew.core.config import Settings, get_settings

# Patterns for sensitive data sanitization
_PATH_PATTERN = re.compile(r"(/[^\s:]+)+")
_CREDENTIAL_PATTERNS = [
    re.compile(r"(password|secret|token|api[_-]?key|auth)[=:]\s*\S+", re.IGNORECASE),
    re.compile(r"Bearer\s+\S+", re.IGNORECASE),
]
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# Context variable for request ID propagation
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Standard log format for console/file
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id.get()


def set_request_id(request_id: str | None) -> None:
    """Set the request ID in context."""
    _request_id.set(request_id)


class ContextFilter(logging.Filter):
    """Filter that adds contextual information to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request_id to the log record."""
        record.request_id = get_request_id()  # type: ignore[attr-defined]
        return True


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with ISO timestamp and extra fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the JSON log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["component"] = record.name

        if getattr(record, "request_id", None):
            log_record["request_id"] = record.request_id  # type: ignore[attr-defined]


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application-wide logging.

    Sets up:
    - Console handler (StreamHandler) with plain text
    - File handler (RotatingFileHandler), plain text or JSON lines
    """
    settings = settings or get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    context_filter = ContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    try:
        log_path = Path(settings.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=settings.log_file_max_bytes,
            backupCount=settings.log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        if settings.log_json:
            file_handler.setFormatter(CustomJsonFormatter("%(message)s"))
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)
    except OSError as e:
        root_logger.warning(f"Could not set up file logging: {e}")

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging configured: level={settings.log_level}, "
        f"file={settings.log_file_path}, json={settings.log_json}"
    )


def sanitize_error(error: Exception, max_length: int = 500) -> str:
    """Sanitize error message for secure logging.

    Removes potentially sensitive information from error messages:
    - Full file paths (keeps only filename)
    - Credentials/tokens/API keys
    - Truncates long error messages

    Args:
        error: The exception to sanitize
        max_length: Maximum length of the sanitized message (default 500)

    Returns:
        Sanitized error message safe for logging
    """
    msg = str(error)

    for pattern in _CREDENTIAL_PATTERNS:
        msg = pattern.sub("[REDACTED]", msg)

    def _simplify_path(match: re.Match[str]) -> str:
        path = match.group(0)
        parts = path.rsplit("/", 1)
        if len(parts) == 2:
            return f".../{parts[1]}"
        return path

    msg = _PATH_PATTERN.sub(_simplify_path, msg)

    if len(msg) > max_length:
        msg = msg[:max_length] + "...[truncated]"

    return msg


def sanitize_log_value(value: Any, max_length: int = 200) -> str:
    """Render a caller-supplied value for a log line.

    Control characters are stripped so user input (names, record ids) cannot
    forge extra log lines.
    """
    text = _CONTROL_CHARS.sub("", str(value))
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z0-9+]+://)[^/@\s]+@")


def redact_url(url: str) -> str:
    """Remove the user/password part of a database URL for logging."""
    return _URL_CREDENTIALS.sub(r"\g<scheme>[REDACTED]@", url)
