"""IRC client interface and its pydle-backed implementation."""

from .protocols import (  # noqa: F401
    ClientFactory,
    EventKind,
    EventListener,
    IrcClientProtocol,
    IrcEvent,
)
from .pydle_client import PydleIrcClient, create_pydle_client  # noqa: F401

__all__ = [
    "ClientFactory",
    "EventKind",
    "EventListener",
    "IrcClientProtocol",
    "IrcEvent",
    "PydleIrcClient",
    "create_pydle_client",
]
