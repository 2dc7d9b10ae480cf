"""
Logging configuration with a colored console handler.

Usage:
    from config.logging import get_logger
    logger = get_logger("relay.bot")
    logger.info("Turn handled", extra={"conversation_id": "abc"})
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

# ANSI color codes for console output
COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# Module-specific colors for tags
TAG_COLORS = {
    "adapters.botframework": "\033[94m",  # Blue
    "adapters.botframework.bot": "\033[95m",  # Magenta
    "adapters.botframework.proactive": "\033[93m",  # Yellow
    "adapters.botframework.trigger": "\033[96m",  # Cyan
    "relay_core.continuation": "\033[91m",  # Red
    "relay_core.storage": "\033[92m",  # Green
}


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that adds colors and a tag-based prefix."""

    def format(self, record: logging.LogRecord) -> str:
        level_color = COLORS.get(record.levelname, "")
        reset = COLORS["RESET"]

        tag = record.name
        tag_color = TAG_COLORS.get(tag, "\033[37m")

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_str = f"{level_color}{record.levelname:8}{reset}"
        tag_str = f"{tag_color}[{tag}]{reset}"

        extra_parts = []
        if hasattr(record, "conversation_id") and record.conversation_id:
            extra_parts.append(f"conversation={record.conversation_id[:12]}")
        if hasattr(record, "channel_id") and record.channel_id:
            extra_parts.append(f"channel={record.channel_id}")
        if hasattr(record, "status_code") and record.status_code:
            extra_parts.append(f"status={record.status_code}")

        extra_str = f" ({', '.join(extra_parts)})" if extra_parts else ""
        msg = f"{timestamp} {level_str} {tag_str} {record.getMessage()}{extra_str}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# Global state
_initialized = False


def _get_console_level() -> int:
    """Get console log level from environment variable."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def init_logging(console_level: int | None = None):
    """Initialize the logging system with a console handler."""
    global _initialized

    if _initialized:
        return

    if console_level is None:
        console_level = _get_console_level()

    # Clear any existing handlers on root logger (from basicConfig or other sources)
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("msrest").setLevel(logging.WARNING)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    if not _initialized:
        init_logging()
    return logging.getLogger(name)


def shutdown_logging():
    """Flush and close all handlers."""
    global _initialized
    logging.shutdown()
    _initialized = False


def set_console_level(level: int | str) -> None:
    """Change the console handler level after initialization."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    if not _initialized:
        init_logging(console_level=level)
        return
    for handler in logging.getLogger().handlers:
        if isinstance(handler.formatter, ColoredConsoleFormatter):
            handler.setLevel(level)
