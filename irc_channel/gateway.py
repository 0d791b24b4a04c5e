"""Host-facing API: send, target resolution, account lifecycle and status."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from .accounts import (
    ResolvedAccount,
    default_account_id,
    list_account_ids,
    list_all_account_ids,
    lookup_account,
    normalize_account_id,
    resolve_account,
)
from .client.protocols import ClientFactory
from .client.pydle_client import create_pydle_client
from .config.model import AccountConfig, IrcConfig
from .constants import IRC_PROBE_TIMEOUT_MS, TARGET_KEY_PREFIX
from .delivery import DeliveryPipeline, DeliveryResult, MessageKind
from .errors import (
    AccountMissingServerError,
    AccountNotFoundError,
    TargetError,
    log_error,
)
from .logs.logger import logger
from .monitor import ConnectionMonitor, ErrorHandler, InboundHandler
from .probe import ProbeResult, ProbeService
from .registry import ConnectionRegistry
from .status import (
    AccountRuntimeStatus,
    AccountSnapshot,
    build_account_snapshot,
    collect_status_issues,
    now_ms,
)
from .targets import TargetKind, classify, decode, normalize

INVALID_TARGET_NOTE = "Invalid IRC target (use #channel or nick)"

# Anything that would not survive as a single PRIVMSG parameter
_UNSENDABLE_RE = re.compile(r"[\s\x00-\x1f\x7f]")

StatusCallback = Callable[[AccountRuntimeStatus], None]


@dataclass(frozen=True)
class SendResult:
    target: str
    text: str
    account_id: str
    chunks: int = 1


@dataclass(frozen=True)
class TargetResolution:
    input: str
    resolved: bool
    id: str | None = None
    note: str | None = None


@dataclass
class AccountContext:
    """Per-call context handed in by the host when starting/stopping accounts.

    ``account`` may carry an already-resolved AccountConfig; when None the
    gateway resolves ``account_id`` against its current config.
    """

    account_id: str
    account: AccountConfig | None = None
    abort_event: asyncio.Event = field(default_factory=asyncio.Event)
    set_status: StatusCallback | None = None


class IrcGateway:
    """Entry point the host platform talks to.

    Args:
        config: Current IRC configuration (None when nothing is configured).
        client_factory: Builds the external client for each account.
        registry: Shared account -> monitor map; a fresh one by default.
        pipeline: Outbound chunking pipeline.
        inbound_handler: Receives every inbound message from every account.
        error_handler: Receives client error events from every account.
    """

    def __init__(
        self,
        config: IrcConfig | None,
        client_factory: ClientFactory = create_pydle_client,
        registry: ConnectionRegistry | None = None,
        pipeline: DeliveryPipeline | None = None,
        inbound_handler: InboundHandler | None = None,
        error_handler: ErrorHandler | None = None,
        probe_service: ProbeService | None = None,
    ) -> None:
        self._config = config
        self.client_factory = client_factory
        self.registry = registry or ConnectionRegistry()
        self.pipeline = pipeline or DeliveryPipeline()
        self.inbound_handler = inbound_handler
        self.error_handler = error_handler
        self.probe_service = probe_service or ProbeService(client_factory)
        self._status: dict[str, AccountRuntimeStatus] = {}
        self._abort_watchers: dict[str, asyncio.Task[None]] = {}

    @property
    def config(self) -> IrcConfig | None:
        return self._config

    def replace_config(self, config: IrcConfig | None) -> None:
        """Swap the configuration wholesale; running connections are untouched."""
        self._config = config
        logger.log_event(
            "gateway", "config_replaced", accounts=len(list_account_ids(config))
        )

    def resolve(self, account_id: str | None = None) -> ResolvedAccount:
        return resolve_account(self._config, account_id)

    def _build_monitor(self, account: ResolvedAccount) -> ConnectionMonitor:
        client = self.client_factory(account.server_config, True)
        return ConnectionMonitor(
            account,
            client,
            inbound_handler=self.inbound_handler,
            error_handler=self.error_handler,
        )

    async def connection_for(self, account_id: str | None = None) -> ConnectionMonitor:
        """Return the account's monitor, connecting on first use."""
        return await self.registry.get_or_start(self.resolve(account_id), self._build_monitor)

    # ---- outbound -------------------------------------------------------

    def _prepare_target(self, target: str, account_id: str | None) -> tuple[str | None, str]:
        """Split a target into (account id, destination) and validate it.

        A ``irc:<account>:<target>`` key selects its own account. Channel
        names are lower-cased; nicks are kept as given.
        """
        raw = target.strip()
        if raw[: len(TARGET_KEY_PREFIX) + 1].lower() == f"{TARGET_KEY_PREFIX}:":
            address = decode(f"{TARGET_KEY_PREFIX}:{raw[len(TARGET_KEY_PREFIX) + 1:]}")
            if address is None:
                raise TargetError(target)
            account_id, raw = address.account_id, address.target
        if raw == "#" or _UNSENDABLE_RE.search(raw):
            raise TargetError(target)
        kind = classify(raw)
        if kind is TargetKind.UNRECOGNIZED:
            raise TargetError(target)
        return account_id, raw.lower() if kind is TargetKind.CHANNEL else raw

    async def send(
        self,
        target: str,
        text: str,
        *,
        account_id: str | None = None,
        action: bool = False,
        notice: bool = False,
    ) -> SendResult:
        """Send ``text`` to a channel or nick.

        Raises:
            TargetError: ``target`` is not a channel, nick or target key.
            ConfigurationError: The account cannot be resolved.
            NotConnectedError / SendInterruptedError: Delivery failed.
        """
        account_id, destination = self._prepare_target(target, account_id)
        account = self.resolve(account_id)
        monitor = await self.registry.get_or_start(account, self._build_monitor)
        if action:
            kind = MessageKind.ACTION
        elif notice:
            kind = MessageKind.NOTICE
        else:
            kind = MessageKind.SAY
        result: DeliveryResult = await self.pipeline.deliver(
            monitor,
            destination,
            text,
            kind,
            split=account.config.split_messages,
            split_prefix=account.config.split_prefix,
        )
        logger.log_event(
            "gateway",
            "sent",
            level=logging.DEBUG,
            account=account.account_id,
            target=destination,
            kind=kind.value,
            chunks=len(result.chunks),
        )
        return SendResult(
            target=destination,
            text=text,
            account_id=account.account_id,
            chunks=len(result.chunks),
        )

    async def react(self, target: str, emote: str, *, account_id: str | None = None) -> None:
        account_id, destination = self._prepare_target(target, account_id)
        monitor = await self.connection_for(account_id)
        await self.pipeline.react(monitor, destination, emote)

    async def edit(
        self,
        target: str,
        original_text: str,
        new_text: str,
        *,
        account_id: str | None = None,
    ) -> SendResult:
        account_id, destination = self._prepare_target(target, account_id)
        account = self.resolve(account_id)
        monitor = await self.registry.get_or_start(account, self._build_monitor)
        result = await self.pipeline.edit(
            monitor,
            destination,
            original_text,
            new_text,
            split_prefix=account.config.split_prefix,
        )
        return SendResult(
            target=destination,
            text=" ".join(result.chunks),
            account_id=account.account_id,
            chunks=len(result.chunks),
        )

    def resolve_targets(
        self, inputs: Iterable[str], account_id: str | None = None
    ) -> list[TargetResolution]:
        """Normalize each input into a target key; failures are reported per item."""
        key_account = normalize_account_id(account_id) or default_account_id(self._config)
        results: list[TargetResolution] = []
        for raw in inputs:
            key = normalize(raw, key_account)
            if key:
                results.append(TargetResolution(input=raw, resolved=True, id=key))
            else:
                results.append(
                    TargetResolution(input=raw, resolved=False, note=INVALID_TARGET_NOTE)
                )
        return results

    # ---- lifecycle ------------------------------------------------------

    def _runtime(self, account_id: str) -> AccountRuntimeStatus:
        status = self._status.get(account_id)
        if status is None:
            status = AccountRuntimeStatus(account_id=account_id)
            self._status[account_id] = status
        return status

    def _publish(self, ctx: AccountContext, status: AccountRuntimeStatus) -> None:
        if ctx.set_status is not None:
            ctx.set_status(replace(status))

    def _context_account_id(self, ctx: AccountContext) -> str:
        return normalize_account_id(ctx.account_id) or default_account_id(self._config)

    def _resolve_context(self, ctx: AccountContext) -> ResolvedAccount:
        account_id = self._context_account_id(ctx)
        if ctx.account is None:
            return self.resolve(account_id)
        if ctx.account.server is None:
            raise AccountMissingServerError(account_id)
        return ResolvedAccount(account_id, ctx.account, ctx.account.server)

    async def start_account(self, ctx: AccountContext) -> ConnectionMonitor:
        """Start (or join the start of) one account's connection.

        Setting ``ctx.abort_event`` later stops the account again. Failures
        are recorded as ``last_error`` and re-raised.
        """
        status = self._runtime(self._context_account_id(ctx))
        status.update(running=True, last_start_at=now_ms(), last_error=None)
        self._publish(ctx, status)
        logger.log_event("gateway", "account_starting", account=status.account_id)
        try:
            account = self._resolve_context(ctx)
            monitor = await self.registry.get_or_start(account, self._build_monitor)
        except Exception as e:
            status.update(running=False, last_error=str(e))
            self._publish(ctx, status)
            log_error("IRC account start failed", e, context={"account_id": status.account_id})
            raise

        self._watch_abort(ctx, status.account_id)
        return monitor

    def _watch_abort(self, ctx: AccountContext, account_id: str) -> None:
        previous = self._abort_watchers.pop(account_id, None)
        if previous is not None:
            previous.cancel()

        async def _wait() -> None:
            await ctx.abort_event.wait()
            logger.log_event("gateway", "abort_requested", account=account_id)
            await self.stop_account(ctx)

        self._abort_watchers[account_id] = asyncio.create_task(
            _wait(), name=f"irc-abort-{account_id}"
        )

    async def stop_account(self, ctx: AccountContext) -> None:
        account_id = self._context_account_id(ctx)
        # An in-flight start may install its abort watcher while this waits
        await self.registry.stop(account_id)
        watcher = self._abort_watchers.pop(account_id, None)
        if watcher is not None and watcher is not asyncio.current_task():
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher
        status = self._runtime(account_id)
        status.update(running=False, last_stop_at=now_ms())
        self._publish(ctx, status)
        logger.log_event("gateway", "account_stopped", account=account_id)

    async def start_all(self, account_ids: Iterable[str] | None = None) -> list[str]:
        """Start every enabled account (or ``account_ids``); returns the ids that came up."""
        started: list[str] = []
        if account_ids is None:
            account_ids = list_account_ids(self._config)
        for account_id in account_ids:
            try:
                await self.start_account(AccountContext(account_id=account_id))
            except Exception:  # noqa: BLE001
                # Already logged and recorded; keep starting the others
                continue
            started.append(account_id)
        return started

    async def stop_all(self) -> None:
        ids = set(self._abort_watchers) | set(self.registry.account_ids)
        for account_id in sorted(ids):
            await self.stop_account(AccountContext(account_id=account_id))

    async def apply_config(self, config: IrcConfig | None) -> None:
        """Swap config, then stop removed/changed accounts and start new ones."""
        old = self._config
        self.replace_config(config)
        wanted = set(list_account_ids(config))
        live = set(self.registry.account_ids) | set(self.registry.pending_account_ids)
        for account_id in sorted(live):
            old_entry = lookup_account(old, account_id)
            new_entry = lookup_account(config, account_id)
            changed = (
                old_entry is None
                or new_entry is None
                or old_entry.server != new_entry.server
            )
            if account_id not in wanted or changed:
                await self.stop_account(AccountContext(account_id=account_id))
                continue
            monitor = await self.registry.wait_started(account_id)
            if monitor is not None:
                # Same server: keep the connection, pick up new channel policy
                monitor.account = resolve_account(config, account_id)
        await self.start_all(sorted(wanted - set(self.registry.account_ids)))

    # ---- status ---------------------------------------------------------

    def snapshot(self, account_id: str, probe: ProbeResult | None = None) -> AccountSnapshot:
        normalized = normalize_account_id(account_id) or account_id
        account = lookup_account(self._config, normalized)
        if account is None:
            raise AccountNotFoundError(normalized, list_all_account_ids(self._config))
        return build_account_snapshot(
            normalized, account, self._status.get(normalized), probe
        )

    def snapshots(self) -> list[AccountSnapshot]:
        return [self.snapshot(account_id) for account_id in list_all_account_ids(self._config)]

    async def probe_account(
        self, account_id: str | None = None, timeout_ms: int = IRC_PROBE_TIMEOUT_MS
    ) -> ProbeResult:
        account = self.resolve(account_id)
        return await self.probe_service.probe(account.server_config, timeout_ms)

    def collect_status_issues(
        self, snapshots: Iterable[AccountSnapshot] | None = None
    ) -> list[str]:
        return collect_status_issues(self.snapshots() if snapshots is None else snapshots)


__all__ = [
    "AccountContext",
    "INVALID_TARGET_NOTE",
    "IrcGateway",
    "SendResult",
    "TargetResolution",
]
