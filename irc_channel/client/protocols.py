"""Protocol definitions for the external IRC client.

The wire protocol (framing, TLS, SASL, reconnection) lives in the client
library. Everything in this package talks to it only through
``IrcClientProtocol`` and the tagged ``IrcEvent`` values it emits.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..config.model import ServerConfig


class EventKind(Enum):
    REGISTERED = "registered"
    MESSAGE = "message"
    NOTICE = "notice"
    JOIN = "join"
    PART = "part"
    QUIT = "quit"
    KICK = "kick"
    CTCP_REQUEST = "ctcp-request"
    ERROR = "error"
    CLOSE = "close"


@dataclass(frozen=True)
class IrcEvent:
    """One event pushed by the client.

    Only the fields meaningful for ``kind`` are set; ``nick`` is the sender
    (or the affected user for join/part/quit).
    """

    kind: EventKind
    nick: str | None = None
    ident: str | None = None
    hostname: str | None = None
    target: str | None = None
    message: str | None = None
    channel: str | None = None
    reason: str | None = None
    kicked: str | None = None
    ctcp_type: str | None = None
    params: str | None = None
    error: BaseException | None = None


EventListener = Callable[[IrcEvent], None]


class IrcClientProtocol(Protocol):
    """Protocol for a single IRC connection."""

    @property
    def nick(self) -> str:
        """Current (server-assigned) nickname."""
        ...

    @property
    def connected(self) -> bool:
        """Check if the connection is up."""
        ...

    async def connect(self) -> None:
        """Open the connection; registration completes asynchronously."""
        ...

    async def quit(self, reason: str | None = None) -> None:
        """Send QUIT and close; safe to call when already disconnected."""
        ...

    async def say(self, target: str, text: str) -> None: ...

    async def notice(self, target: str, text: str) -> None: ...

    async def action(self, target: str, text: str) -> None: ...

    async def join(self, channel: str) -> None: ...

    async def part(self, channel: str, reason: str | None = None) -> None: ...

    async def ctcp_request(self, target: str, ctcp_type: str, params: str | None = None) -> None: ...

    async def ctcp_response(self, target: str, ctcp_type: str, params: str) -> None: ...

    def channel_list(self) -> list[str]:
        """Channels currently joined."""
        ...

    def add_listener(self, listener: EventListener) -> None:
        """Register a callback invoked synchronously for every event."""
        ...

    def remove_all_listeners(self) -> None: ...


# (server config, auto_reconnect) -> client
ClientFactory = Callable[[ServerConfig, bool], IrcClientProtocol]
