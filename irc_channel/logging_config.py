"""
Logging configuration for the IRC channel core.

Provides a configurable root logging setup using the colorlog library plus a
structured error helper shared by the error handling module.
"""

import logging
import os
import sys
from typing import Any

import colorlog


class PydleNoiseFilter(logging.Filter):
    """Filter to suppress the client library's per-line protocol chatter."""

    def filter(self, record):
        """Return False for DEBUG records emitted by the pydle loggers."""
        return not (record.name.startswith("pydle") and record.levelno <= logging.DEBUG)


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context.

    Produces ``[TYPE] message | Exception: Name: text | Context: k=v`` so
    errors stay grep-able per category.

    Args:
        error_type: Category of the error (e.g., 'config', 'connection', 'protocol')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    structured_message = f"[{error_type.upper()}] {message}"

    if exception:
        structured_message += f" | Exception: {type(exception).__name__}: {str(exception)}"

    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Supports environment variable configuration for log levels.
    """

    def __init__(self, config=None):
        """Initialize the configurator.

        Args:
            config: Optional config dict; ``stream`` overrides the output stream.
        """
        self.config = config or {}

    def configure(self):
        """Configure logging with colored output using colorlog.

        Uses environment variables:
        - DEBUG: Set to 'true', '1', or 'yes' for DEBUG level, otherwise INFO
        """
        debug_env = os.environ.get("DEBUG", "").lower()
        log_level = logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

        handler = logging.StreamHandler(self.config.get("stream", sys.stderr))
        handler.setFormatter(formatter)
        handler.addFilter(PydleNoiseFilter())

        logging.basicConfig(
            level=log_level,
            handlers=[handler],
            format="%(message)s",
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # pydle logs every raw line at DEBUG
        logging.getLogger("pydle").setLevel(logging.INFO)

        for h in root_logger.handlers:
            h.setFormatter(formatter)
            h.addFilter(PydleNoiseFilter())
        return root_logger
