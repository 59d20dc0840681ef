"""Logging infrastructure for Pantry Chef.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Structured fields are passed with ``extra={"context": {...}}``. The JSON
formatter emits them as a ``context`` object; the text formatter appends them
as key=value pairs. Sensitive keys are removed from the context in both cases.
"""

import json
import logging
import os
import sys
from typing import Any


# Keys removed from structured context before a record is emitted
REDACTED_KEYS = frozenset(
    {
        "api_key",
        "apikey",
        "gemini_api_key",
        "token",
        "id_token",
        "authorization",
        "password",
        "secret",
        "private_key",
    }
)


def redact_context(context: Any) -> Any:
    """Return a copy of a context mapping with sensitive keys removed (recursively).

    Args:
        context: Structured logging context (dict, list or scalar).

    Returns:
        Same shape as the input without any key listed in REDACTED_KEYS.
    """
    if isinstance(context, dict):
        return {
            key: redact_context(value)
            for key, value in context.items()
            if str(key).lower() not in REDACTED_KEYS
        }
    if isinstance(context, list):
        return [redact_context(value) for value in context]
    return context


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with timestamp, level, logger name, message, context and optional traceback.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include exception traceback if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Include structured context and request_id if present in record
        if hasattr(record, "context"):
            log_data["context"] = redact_context(record.context)
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id

        return json.dumps(log_data, default=str)


class RichTextFormatter(logging.Formatter):
    """Formatter that outputs colored text with emoji icons."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "RESET": "\033[0m",       # Reset
    }

    # Emoji icons for each level
    ICONS = {
        "DEBUG": "🔍",
        "INFO": "ℹ️",
        "WARNING": "⚠️",
        "ERROR": "❌",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as colored text.

        Args:
            record: Log record to format.

        Returns:
            Formatted string with color codes, emoji icon and context fields.
        """
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        # Format: YYYY-MM-DD HH:MM:SS
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        message = f"{color}{icon} {timestamp} {level:<8} {record.name:<20} {record.getMessage()}"

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            fields = " ".join(f"{key}={value!r}" for key, value in redact_context(context).items())
            message += f" | {fields}"
        message += reset

        # Include exception traceback if present
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def get_logger(name: str) -> logging.Logger:
    """Create and configure logger instance.

    Args:
        name: Logger name, typically module name.

    Returns:
        Configured logger instance.
    """
    logger_instance = logging.getLogger(name)

    # Return existing logger if already configured
    if logger_instance.handlers:
        return logger_instance

    # Read configuration from environment
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_type = os.getenv("LOG_TYPE", "text").lower()

    # Set log level
    log_level = getattr(logging, log_level_str, logging.INFO)
    logger_instance.setLevel(log_level)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    # Choose and attach formatter
    if log_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = RichTextFormatter()

    handler.setFormatter(formatter)
    logger_instance.addHandler(handler)

    return logger_instance


# Create module-level logger instance
logger = get_logger("pantry_chef")

# Suppress verbose informational warnings from external libraries
logging.getLogger("google.genai").setLevel(logging.WARNING)  # Suppress Gemini debug logs
