"""Error hierarchy and logging helpers."""

from .handling import classify_error, log_error
from .internal import (
    AccountMissingServerError,
    AccountNotFoundError,
    ConfigNotFoundError,
    ConfigurationError,
    IrcChannelError,
    IrcConnectionError,
    NotConnectedError,
    ProtocolError,
    SendInterruptedError,
    TargetError,
)

__all__ = [
    "IrcChannelError",
    "ConfigurationError",
    "ConfigNotFoundError",
    "AccountNotFoundError",
    "AccountMissingServerError",
    "IrcConnectionError",
    "NotConnectedError",
    "ProtocolError",
    "SendInterruptedError",
    "TargetError",
    "classify_error",
    "log_error",
]
