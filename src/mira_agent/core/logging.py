"""Logging infrastructure for the MIRA agent backend.

This module provides structured logging for errors, debugging, and analytics.
All logging functions use the standard library logging module so uvicorn and
the CLI can share the same handlers.
"""

import logging
import sys
from typing import Any


class ErrorIds:
    """Constants for error IDs used in logging and error tracking."""

    # Model API errors
    LLM_API_ERROR = "ERR_LLM_API"
    LLM_MALFORMED_RESPONSE = "ERR_LLM_MALFORMED"

    # Tool execution errors
    TOOL_ARGUMENTS_INVALID = "ERR_TOOL_ARGS"
    TOOL_UNKNOWN = "ERR_TOOL_UNKNOWN"
    WEB_FETCH_FAILED = "ERR_WEB_FETCH"

    # Browser session errors
    BROWSER_DISABLED = "ERR_BROWSER_DISABLED"
    BROWSER_LAUNCH_FAILED = "ERR_BROWSER_LAUNCH"
    NAVIGATION_FAILED = "ERR_NAVIGATE"
    SCREENSHOT_CAPTURE_FAILED = "ERR_SCREENSHOT"
    BROWSER_INPUT_FAILED = "ERR_BROWSER_INPUT"
    BROWSER_CLOSE_FAILED = "ERR_BROWSER_CLOSE"

    # General errors
    UNEXPECTED_ERROR = "ERR_UNEXPECTED"


_logger: logging.Logger | None = None

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _get_logger() -> logging.Logger:
    """Get or create the logger instance."""
    global _logger
    if _logger is None:
        _logger = logging.getLogger("mira_agent")
        _logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        _logger.addHandler(console_handler)

    return _logger


def _format_extra(message: str, extra: dict[str, Any] | None) -> str:
    if not extra:
        return message
    extra_str = ", ".join(f"{k}={v}" for k, v in extra.items())
    return f"{message} | {extra_str}"


def logError(
    error_id: str,
    message: str,
    exc_info: bool = False,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log an error for error tracking.

    Args:
        error_id: The error ID constant from ErrorIds.
        message: Human-readable error message.
        exc_info: If True, include exception info in the log.
        extra: Optional additional context as key-value pairs.
    """
    _get_logger().error(_format_extra(f"[{error_id}] {message}", extra), exc_info=exc_info)


def logForDebugging(
    message: str,
    level: str = "debug",
    extra: dict[str, Any] | None = None,
) -> None:
    """Log a developer-facing message.

    Args:
        message: The message to log.
        level: Log level - "debug", "info", "warning", or "error".
        extra: Optional additional context as key-value pairs.
    """
    log_level = getattr(logging, level.upper(), logging.DEBUG)
    _get_logger().log(log_level, _format_extra(message, extra))


def logEvent(
    event_name: str,
    properties: dict[str, Any] | None = None,
) -> None:
    """Log an analytics event.

    Args:
        event_name: The name of the event (e.g., "turn_completed", "browser_started").
        properties: Optional event properties as key-value pairs.
    """
    _get_logger().info(_format_extra(f"[EVENT] {event_name}", properties))


def set_log_level(level: str | int) -> None:
    """Set the logging level for the agent backend.

    Args:
        level: Log level as string ("debug", "info", "warning", "error")
               or int (logging.DEBUG, logging.INFO, etc.).
    """
    logger = _get_logger()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.handlers[0].setLevel(level)


def enable_file_logging(filepath: str) -> None:
    """Enable file logging to a specific file.

    Args:
        filepath: Path to the log file.
    """
    file_handler = logging.FileHandler(filepath)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    _get_logger().addHandler(file_handler)
