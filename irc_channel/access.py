"""Hostmask / nick allowlist evaluation."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from functools import lru_cache

from .accounts import resolve_account
from .config.model import AccountConfig, ChannelConfig, IrcConfig, NetworkEntry


@lru_cache(maxsize=256)
def _wildcard_pattern(entry: str) -> re.Pattern[str]:
    # Only '*' is special; everything else matches literally
    parts = (re.escape(part) for part in entry.split("*"))
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


def _hostname_matches(hostname: str, entry: str) -> bool:
    if "*" in entry:
        return _wildcard_pattern(entry).fullmatch(hostname) is not None
    return hostname.lower() == entry.lower()


def is_allowed(nick: str, hostname: str | None, allowlist: Sequence[str] | None) -> bool:
    """Return True when the sender passes ``allowlist``.

    An empty (or unset) allowlist admits everyone. Otherwise the sender is
    admitted when its nick equals an entry case-insensitively, or when its
    hostname matches an entry in which ``*`` stands for any run of characters.
    """
    if not allowlist:
        return True
    nick_lower = nick.lower()
    if any(entry.lower() == nick_lower for entry in allowlist):
        return True
    if hostname:
        return any(_hostname_matches(hostname, entry) for entry in allowlist)
    return False


def _find_channel(
    account: AccountConfig, channel: str
) -> tuple[NetworkEntry, ChannelConfig] | None:
    wanted = channel.lower().lstrip("#")
    for network in account.networks.values():
        for name, channel_cfg in network.channels.items():
            if name.lower().lstrip("#") == wanted:
                return network, channel_cfg
    return None


def resolve_channel_config(account: AccountConfig, channel: str) -> ChannelConfig | None:
    """Find the config for ``channel`` across all networks (case-insensitive).

    Config keys may be written with or without the leading ``#``.
    """
    found = _find_channel(account, channel)
    return found[1] if found else None


def effective_allowlist(account: AccountConfig, target: str) -> list[str]:
    """Allowlist governing messages arriving on ``target``.

    For channels, a channel-level ``users`` list replaces the network-level
    list outright. Channels absent from the config are open. For DMs the
    account's ``dm.allowFrom`` applies.
    """
    if not target.startswith("#"):
        return list(account.dm.allow_from)
    found = _find_channel(account, target)
    if found is None:
        return []
    network, channel_cfg = found
    if channel_cfg.users is not None:
        return list(channel_cfg.users)
    return list(network.users or [])


def is_sender_allowed(
    account: AccountConfig, target: str, nick: str, hostname: str | None
) -> bool:
    return is_allowed(nick, hostname, effective_allowlist(account, target))


def format_allow_from(entries: Iterable[object]) -> list[str]:
    """Trim, drop blanks and lower-case allowlist entries for display."""
    formatted = (str(entry).strip() for entry in entries)
    return [entry.lower() for entry in formatted if entry]


def resolve_allow_from(cfg: IrcConfig | None, account_id: str | None = None) -> list[str]:
    account = resolve_account(cfg, account_id)
    return [str(entry) for entry in account.config.dm.allow_from]


__all__ = [
    "effective_allowlist",
    "format_allow_from",
    "is_allowed",
    "is_sender_allowed",
    "resolve_allow_from",
    "resolve_channel_config",
]
