from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    ConfigurationError,
    IrcChannelError,
    IrcConnectionError,
    ProtocolError,
    TargetError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception onto the error category used in structured logs."""
    if isinstance(error, ConfigurationError):
        return "config"
    if isinstance(error, IrcConnectionError | OSError | ConnectionError):
        return "connection"
    if isinstance(error, ProtocolError):
        return "protocol"
    if isinstance(error, TargetError):
        return "target"
    if isinstance(error, IrcChannelError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: Exception,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging. The
            exception's own ``data`` is merged underneath it.
        level: Logging level, ERROR unless the caller downgrades it.
    """
    merged: dict = {}
    if isinstance(error, IrcChannelError):
        merged.update(error.data)
    if context:
        merged.update(context)
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=merged or None,
        level=level,
    )
