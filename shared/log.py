#!/usr/bin/env python3
"""
Lightrain Logging Configuration

Centralized logging setup for consistent formatting across the project.
Supports both development (coloured console) and production (plain console
plus file) modes.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting to controller...")
    logger.error("Connection failed", extra={"connection_id": "3f2a9c1d", "endpoint": "127.0.0.1:5776"})
"""

from __future__ import annotations
import logging
import sys
from typing import Any, Optional
import os

from shared.config import LogSettings


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; the same record also reaches the file handler
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)


class GenericFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        context = []

        # Extract connection fields from extra data
        if getattr(record, 'connection_id', None):
            context.append(f"conn={record.connection_id}")
        if getattr(record, 'endpoint', None):
            context.append(f"endpoint={record.endpoint}")
        if getattr(record, 'event', None):
            context.append(f"event={record.event}")

        if context:
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"[{' '.join(context)}] {record.msg}"

        return super().format(record)


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()

def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""
    settings = LogSettings.from_env()

    logger.setLevel(_get_log_level(level or settings.level, settings))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if _is_development(settings):
        _add_console_handler(logger, colored=True)
    else:
        _add_console_handler(logger, colored=False)
    if settings.log_to_file:
        _add_file_handler(logger, settings)

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str], settings: LogSettings) -> int:
    """Determine appropriate log level"""

    if level:
        return getattr(logging, level.upper(), logging.INFO)

    return logging.DEBUG if _is_development(settings) else logging.INFO


def _is_development(settings: LogSettings) -> bool:
    """Detect if we're in development mode"""
    return settings.is_development or 'pytest' in sys.modules


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    handler = logging.StreamHandler(sys.stdout)

    if colored and _supports_color():
        formatter = ColoredFormatter(
            fmt=fmt,
            datefmt='%H:%M:%S'
        )
    else:
        formatter = GenericFormatter(
            fmt=fmt,
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger, settings: LogSettings) -> None:
    """Add file handler for production logging"""

    settings.log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.log_dir / "lightrain.log")

    formatter = GenericFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stdout must be a terminal
    if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
        return False

    # TERM should not be dumb
    if os.getenv("TERM", "") == "dumb":
        return False

    if sys.platform == "win32":
        # On modern Windows terminals, ANSI colors are supported
        return (
            os.getenv("ANSICON") is not None
            or os.getenv("WT_SESSION") is not None
            or os.getenv("TERM_PROGRAM") == "vscode"
        )

    return True

# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup.

    Loggers already handed out by ``get_logger`` are moved to the same level.

    Args:
        level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(root_logger.level)


def log_connection_event(logger: logging.Logger, level: str, message: str,
                         connection_id: Optional[str] = None,
                         endpoint: Optional[str] = None,
                         event: Optional[str] = None,
                         **context: Any) -> None:
    """
    Log a connection lifecycle record with structured context.

    Args:
        logger: Logger instance
        level: Log level ("debug", "info", "warning", "error")
        message: Log message
        connection_id: Short id of the owning ConnectionLink
        endpoint: host:port of the remote side
        event: Lifecycle event type ("OPENED", "CLOSED", ...)
        **context: Additional context fields

    Example:
        log_connection_event(logger, "info", "open: Opened(uri=...)",
                             connection_id=link.id, event="OPENED")
    """
    extra_context = {
        'connection_id': connection_id,
        'endpoint': endpoint,
        'event': event,
    }
    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
