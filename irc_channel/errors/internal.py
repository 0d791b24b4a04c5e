"""Centralized error hierarchy for the IRC channel core.

Classes:
  IrcChannelError            – Base for all package errors (carries ``data``).
  ConfigurationError         – IRC not configured / account unknown / no server.
  IrcConnectionError         – Operation attempted without a usable connection.
  NotConnectedError          – The connection handle reports disconnected.
  ProtocolError              – Error event reported by the IRC client.
  SendInterruptedError       – Disconnect in the middle of a chunked send.
  TargetError                – Malformed or unrecognized destination.

Configuration errors are fatal to the calling operation and never retried.
No error in this module triggers an automatic retry.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class IrcChannelError(Exception):
    """Base class for all IRC channel errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ConfigurationError(IrcChannelError):
    """Raised when the IRC configuration cannot satisfy a request."""


class ConfigNotFoundError(ConfigurationError):
    """Raised when no IRC configuration exists at all."""

    def __init__(
        self,
        message: str = "IRC is not configured. Set channels.irc.server or channels.irc.accounts",
    ) -> None:
        super().__init__(message)


class AccountNotFoundError(ConfigurationError):
    """Raised when an explicit account id has no matching entry.

    The message names the requested id and lists the available ids.
    """

    def __init__(
        self,
        account_id: str,
        available: Sequence[str],
        message: str | None = None,
    ) -> None:
        self.account_id = account_id
        self.available = list(available)
        if message is None:
            message = (
                f'IRC account "{account_id}" not found. '
                f"Available: {', '.join(self.available) or '(none)'}"
            )
        super().__init__(
            message, data={"account_id": account_id, "available": self.available}
        )


class AccountMissingServerError(ConfigurationError):
    """Raised when the matched account entry has no server block."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(
            f'IRC account "{account_id}" missing server configuration',
            data={"account_id": account_id},
        )


class IrcConnectionError(IrcChannelError):
    """Raised when an operation needs a connection that is not usable."""


class NotConnectedError(IrcConnectionError):
    """Raised when the connection handle reports it is not connected."""

    def __init__(self, account_id: str | None = None) -> None:
        self.account_id = account_id
        super().__init__("IRC client not connected", data={"account_id": account_id})


class ProtocolError(IrcChannelError):
    """Error event reported by the IRC client (logged, forwarded, never fatal)."""


class SendInterruptedError(IrcConnectionError):
    """Raised when the connection drops in the middle of a chunked send.

    Attributes:
        sent: Number of chunks already emitted before the interruption.
        total: Number of chunks the message was split into.
    """

    def __init__(self, target: str, sent: int, total: int) -> None:
        self.target = target
        self.sent = sent
        self.total = total
        super().__init__(
            f"Send to {target} interrupted after {sent}/{total} chunks",
            data={"target": target, "sent": sent, "total": total},
        )


class TargetError(IrcChannelError):
    """Raised for a malformed or unrecognized IRC destination."""

    def __init__(self, raw_target: str, note: str | None = None) -> None:
        self.raw_target = raw_target
        self.note = note or "Invalid IRC target (use #channel or nick)"
        super().__init__(
            f"{self.note}: {raw_target!r}", data={"target": raw_target}
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
]
