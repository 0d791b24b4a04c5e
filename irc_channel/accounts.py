"""Account registry: enumerate and resolve configured IRC accounts.

Single-account mode (a top-level ``server`` block) exposes one synthetic
account named ``default``. Multi-account mode exposes every key of
``accounts``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config.model import AccountConfig, IrcConfig, ServerConfig
from .constants import DEFAULT_ACCOUNT_ID
from .errors import (
    AccountMissingServerError,
    AccountNotFoundError,
    ConfigNotFoundError,
)


@dataclass(frozen=True)
class ResolvedAccount:
    """An account id bound to its config; ``server_config`` is never None."""

    account_id: str
    config: AccountConfig
    server_config: ServerConfig


def normalize_account_id(account_id: str | None) -> str | None:
    if account_id is None:
        return None
    normalized = account_id.strip().lower()
    return normalized or None


def _account_entries(cfg: IrcConfig) -> dict[str, AccountConfig]:
    """Map normalized ids onto their entries (multi-account mode only)."""
    entries: dict[str, AccountConfig] = {}
    for raw_id, account in (cfg.accounts or {}).items():
        entries[normalize_account_id(raw_id) or raw_id] = account
    return entries


def list_account_ids(cfg: IrcConfig | None) -> list[str]:
    """List the ids of every enabled account."""
    if cfg is None:
        return []
    if cfg.is_multi_account:
        return [
            account_id
            for account_id, account in _account_entries(cfg).items()
            if account.enabled
        ]
    if cfg.enabled and cfg.server is not None:
        return [DEFAULT_ACCOUNT_ID]
    return []


def list_all_account_ids(cfg: IrcConfig | None) -> list[str]:
    """List every account id, enabled or not."""
    if cfg is None:
        return []
    if cfg.is_multi_account:
        return list(_account_entries(cfg))
    if cfg.server is not None:
        return [DEFAULT_ACCOUNT_ID]
    return []


def default_account_id(cfg: IrcConfig | None) -> str:
    ids = list_account_ids(cfg)
    if len(ids) == 1:
        return ids[0]
    return DEFAULT_ACCOUNT_ID


def lookup_account(cfg: IrcConfig | None, account_id: str) -> AccountConfig | None:
    """Return the entry for ``account_id`` whether or not it has a server."""
    if cfg is None:
        return None
    normalized = normalize_account_id(account_id)
    if cfg.is_multi_account:
        return _account_entries(cfg).get(normalized or "")
    if normalized == DEFAULT_ACCOUNT_ID:
        return cfg
    return None


def resolve_account(cfg: IrcConfig | None, account_id: str | None = None) -> ResolvedAccount:
    """Resolve an account id (or the default one) to its configuration.

    Args:
        cfg: The loaded IRC configuration, or None when nothing is configured.
        account_id: Explicit id to resolve. When omitted, the single enabled
            account is used, falling back to ``default``.

    Returns:
        The resolved account with a non-null server block.

    Raises:
        ConfigNotFoundError: There is no IRC configuration at all.
        AccountNotFoundError: The requested id has no entry.
        AccountMissingServerError: The entry exists but has no server block.
    """
    if cfg is None or (cfg.server is None and cfg.accounts is None):
        raise ConfigNotFoundError()

    requested = normalize_account_id(account_id) or default_account_id(cfg)

    if cfg.is_multi_account:
        entries = _account_entries(cfg)
        account = entries.get(requested)
        if account is None:
            raise AccountNotFoundError(requested, list(entries))
        if account.server is None:
            raise AccountMissingServerError(requested)
        return ResolvedAccount(requested, account, account.server)

    if requested != DEFAULT_ACCOUNT_ID:
        raise AccountNotFoundError(requested, [DEFAULT_ACCOUNT_ID])
    if cfg.server is None:  # pragma: no cover - excluded by the first check
        raise AccountMissingServerError(DEFAULT_ACCOUNT_ID)
    return ResolvedAccount(DEFAULT_ACCOUNT_ID, cfg, cfg.server)


__all__ = [
    "ResolvedAccount",
    "default_account_id",
    "list_account_ids",
    "list_all_account_ids",
    "lookup_account",
    "normalize_account_id",
    "resolve_account",
]
