"""Canonical IRC target addressing.

A target key looks like ``irc:<account>:<target>`` with the target portion
lower-cased. Channels start with ``#``; anything matching the nick grammar is
a direct-message target.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .config.model import AccountConfig
from .constants import DEFAULT_ACCOUNT_ID, TARGET_KEY_PREFIX

_NICK_RE = re.compile(r"^[a-zA-Z_\-\[\]\\^{}|`][a-zA-Z0-9_\-\[\]\\^{}|`]*$")
_NICK_START_RE = re.compile(r"^[a-zA-Z_\-\[\]\\^{}|`]")
_KEY_RE = re.compile(rf"^{TARGET_KEY_PREFIX}:([^:]+):(.+)$")
_PREFIXED_RE = re.compile(rf"^{TARGET_KEY_PREFIX}:[^:]+:.+", re.IGNORECASE)
_NETWORK_RE = re.compile(r"^([^#:]+)[#:](.+)$")
# Short classic nick, optionally with its !user@host mask
_HOSTMASK_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]{0,8}(![^@]+@[^@]+)?$")
_WHITESPACE_RE = re.compile(r"\s")


class TargetKind(Enum):
    CHANNEL = "channel"
    DM = "dm"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class TargetAddress:
    account_id: str
    target: str


@dataclass(frozen=True)
class IrcTarget:
    """A resolved destination on one account.

    ``network`` is set only when the input used ``network#channel`` form.
    """

    kind: TargetKind
    target: str
    network: str | None = None
    server: str | None = None


def encode(account_id: str, raw_target: str) -> str:
    """Build the canonical key for ``raw_target`` on ``account_id``."""
    return f"{TARGET_KEY_PREFIX}:{account_id}:{raw_target.lower()}"


def decode(key: str) -> TargetAddress | None:
    match = _KEY_RE.match(key)
    if not match:
        return None
    return TargetAddress(account_id=match.group(1), target=match.group(2))


def classify(raw_target: str) -> TargetKind:
    trimmed = raw_target.strip()
    if trimmed.startswith("#"):
        return TargetKind.CHANNEL
    if _NICK_RE.match(trimmed):
        return TargetKind.DM
    return TargetKind.UNRECOGNIZED


def normalize(raw_target: str, account_id: str = DEFAULT_ACCOUNT_ID) -> str | None:
    """Return the canonical key for a user-supplied target, or None.

    Already-prefixed keys are accepted case-insensitively and lower-cased.
    Input containing whitespace is never a valid target.
    """
    trimmed = raw_target.strip()
    if not trimmed or _WHITESPACE_RE.search(trimmed):
        return None
    if _PREFIXED_RE.match(trimmed):
        return trimmed.lower()
    if classify(trimmed) is TargetKind.UNRECOGNIZED:
        return None
    return encode(account_id, trimmed)


def resolve_target(raw_target: str, account: AccountConfig) -> IrcTarget | None:
    """Resolve free-form input against one account.

    Besides ``#channel`` and bare nicks, accepts ``network#channel`` and
    ``network:channel`` shorthand.
    """
    trimmed = raw_target.strip()
    if not trimmed:
        return None
    host = account.server.host if account.server else None

    if trimmed.startswith("#"):
        return IrcTarget(TargetKind.CHANNEL, trimmed.lower(), server=host)

    if _NICK_RE.match(trimmed):
        return IrcTarget(TargetKind.DM, trimmed, server=host)

    match = _NETWORK_RE.match(trimmed)
    if match and not _WHITESPACE_RE.search(trimmed):
        network, channel = match.group(1), match.group(2).lower()
        if not channel.startswith("#"):
            channel = f"#{channel}"
        return IrcTarget(TargetKind.CHANNEL, channel, network=network)

    return None


def looks_like_target(raw: str) -> bool:
    """Cheap check used by hosts deciding which channel plugin owns a string."""
    trimmed = raw.strip()
    if not trimmed:
        return False
    if trimmed.startswith("#"):
        return True
    if _HOSTMASK_RE.match(trimmed):
        return True
    return trimmed.lower().startswith(f"{TARGET_KEY_PREFIX}:")


def is_channel(target: str) -> bool:
    return target.startswith("#")


def is_dm(target: str) -> bool:
    return not target.startswith("#") and bool(_NICK_START_RE.match(target))


__all__ = [
    "IrcTarget",
    "TargetAddress",
    "TargetKind",
    "classify",
    "decode",
    "encode",
    "is_channel",
    "is_dm",
    "looks_like_target",
    "normalize",
    "resolve_target",
]
