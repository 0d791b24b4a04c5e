"""Account status snapshots for the host platform's status views.

Timestamps are epoch milliseconds.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from .config.model import AccountConfig, ServerConfig
from .constants import DEFAULT_ACCOUNT_ID
from .probe import ProbeResult


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class AccountRuntimeStatus:
    account_id: str = DEFAULT_ACCOUNT_ID
    running: bool = False
    last_start_at: int | None = None
    last_stop_at: int | None = None
    last_error: str | None = None

    def update(self, **changes: Any) -> None:
        for key, value in changes.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown status field: {key}")
            setattr(self, key, value)


@dataclass
class AccountSnapshot:
    account_id: str
    enabled: bool
    configured: bool
    running: bool = False
    last_start_at: int | None = None
    last_stop_at: int | None = None
    last_error: str | None = None
    probe: ProbeResult | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["probe"] = self.probe.to_dict() if self.probe else None
        return data


def is_account_configured(
    account: AccountConfig, server_config: ServerConfig | None = None
) -> bool:
    """A server block with both host and nick counts as configured."""
    server = server_config or account.server
    return bool(server and server.host and server.nick)


def is_account_enabled(account: AccountConfig) -> bool:
    return account.enabled is not False


def describe_account(account: AccountConfig, account_id: str = DEFAULT_ACCOUNT_ID) -> dict[str, Any]:
    return {
        "account_id": account_id,
        "enabled": is_account_enabled(account),
        "configured": is_account_configured(account),
    }


def build_account_snapshot(
    account_id: str,
    account: AccountConfig,
    runtime: AccountRuntimeStatus | None = None,
    probe: ProbeResult | None = None,
) -> AccountSnapshot:
    runtime = runtime or AccountRuntimeStatus(account_id=account_id)
    return AccountSnapshot(
        account_id=account_id,
        enabled=is_account_enabled(account),
        configured=is_account_configured(account),
        running=runtime.running,
        last_start_at=runtime.last_start_at,
        last_stop_at=runtime.last_stop_at,
        last_error=runtime.last_error,
        probe=probe,
    )


def collect_status_issues(snapshots: Iterable[AccountSnapshot]) -> list[str]:
    return [
        f"{snapshot.account_id}: IRC not configured (missing server config)"
        for snapshot in snapshots
        if not snapshot.configured
    ]


__all__ = [
    "AccountRuntimeStatus",
    "AccountSnapshot",
    "build_account_snapshot",
    "collect_status_issues",
    "describe_account",
    "is_account_configured",
    "is_account_enabled",
    "now_ms",
]
