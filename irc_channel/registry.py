"""Per-account connection registry.

The only state shared between accounts. Starts are serialized per account id:
a second ``get_or_start`` while the first is still connecting awaits the same
task instead of opening another connection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .accounts import ResolvedAccount
from .logs.logger import logger
from .monitor import ConnectionMonitor

MonitorFactory = Callable[[ResolvedAccount], ConnectionMonitor]


class ConnectionRegistry:
    def __init__(self) -> None:
        self._monitors: dict[str, ConnectionMonitor] = {}
        self._starting: dict[str, asyncio.Task[ConnectionMonitor]] = {}

    def get(self, account_id: str) -> ConnectionMonitor | None:
        return self._monitors.get(account_id)

    @property
    def account_ids(self) -> list[str]:
        return sorted(self._monitors)

    @property
    def pending_account_ids(self) -> list[str]:
        """Accounts whose start is still in flight."""
        return sorted(self._starting)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._monitors

    def __len__(self) -> int:
        return len(self._monitors)

    async def get_or_start(
        self, account: ResolvedAccount, factory: MonitorFactory
    ) -> ConnectionMonitor:
        """Return the running monitor for ``account``, starting one if needed.

        ``factory`` builds an unstarted monitor; it is only called when no
        monitor exists and no start is already in flight.
        """
        account_id = account.account_id
        existing = self._monitors.get(account_id)
        if existing is not None and not existing.stopped:
            return existing

        pending = self._starting.get(account_id)
        if pending is None:
            pending = asyncio.create_task(
                self._start(account, factory), name=f"irc-start-{account_id}"
            )
            self._starting[account_id] = pending
            pending.add_done_callback(
                lambda task, aid=account_id: self._clear_pending(aid, task)
            )
        else:
            logger.log_event(
                "registry", "start_joined", level=logging.DEBUG, account=account_id
            )
        # A cancelled caller must not cancel the shared start
        return await asyncio.shield(pending)

    def _clear_pending(self, account_id: str, task: asyncio.Task[ConnectionMonitor]) -> None:
        if self._starting.get(account_id) is task:
            del self._starting[account_id]
        if not task.cancelled():
            # Retrieve so an unawaited failure is not reported as never retrieved
            task.exception()

    async def _start(
        self, account: ResolvedAccount, factory: MonitorFactory
    ) -> ConnectionMonitor:
        monitor = factory(account)
        await monitor.start()
        self._monitors[account.account_id] = monitor
        logger.log_event("registry", "started", account=account.account_id)
        return monitor

    async def wait_started(self, account_id: str) -> ConnectionMonitor | None:
        """Wait out an in-flight start, then return the account's monitor if any."""
        pending = self._starting.get(account_id)
        if pending is not None:
            try:
                await asyncio.shield(pending)
            except Exception:  # noqa: BLE001
                # The caller that started it reports the failure
                return None
        return self._monitors.get(account_id)

    async def stop(self, account_id: str) -> bool:
        """Stop and forget the monitor for ``account_id``.

        Waits for an in-flight start first. Returns False when nothing ran.
        """
        pending = self._starting.get(account_id)
        if pending is not None:
            try:
                await asyncio.shield(pending)
            except Exception:  # noqa: BLE001
                # A failed start leaves nothing to stop
                return False
        monitor = self._monitors.pop(account_id, None)
        if monitor is None:
            return False
        await monitor.stop()
        logger.log_event("registry", "stopped", account=account_id)
        return True

    async def stop_all(self) -> None:
        ids = set(self._monitors) | set(self._starting)
        await asyncio.gather(*(self.stop(account_id) for account_id in ids))


__all__ = ["ConnectionRegistry", "MonitorFactory"]
