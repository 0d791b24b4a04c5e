"""Connection lifecycle monitoring for one IRC account.

The client pushes tagged events into a queue; a single consumer task
dispatches them, so handlers for one connection never run concurrently.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto

from .access import resolve_channel_config
from .accounts import ResolvedAccount
from .client.protocols import EventKind, IrcClientProtocol, IrcEvent
from .constants import (
    CTCP_SOURCE_URL,
    CTCP_VERSION_REPLY,
    MONITOR_STOP_TIMEOUT_SECONDS,
)
from .errors import ProtocolError, log_error
from .logs.logger import logger


class ConnectionState(Enum):
    IDLE = auto()
    CONNECTING = auto()
    REGISTERED = auto()
    CLOSING = auto()
    ERRORED = auto()


@dataclass(frozen=True)
class InboundMessage:
    """A message delivered to the host platform.

    For DMs ``target`` is the sender nick, i.e. the address to reply to.
    """

    account_id: str
    nick: str
    ident: str | None
    hostname: str | None
    target: str
    text: str
    is_dm: bool

    @property
    def hostmask(self) -> str:
        return f"{self.nick}!{self.ident or '*'}@{self.hostname or '*'}"


InboundHandler = Callable[[InboundMessage], Awaitable[None] | None]
ErrorHandler = Callable[[Exception], Awaitable[None] | None]


def auto_join_channels(resolved: ResolvedAccount) -> list[str]:
    """Channels to join after registration, ``#``-prefixed and de-duplicated.

    Channels configured ``enabled: false`` are skipped.
    """
    names: list[str] = []
    for _network, channel, channel_cfg in resolved.config.iter_channels():
        if channel_cfg.enabled is False:
            continue
        names.append(channel)
    names.extend(resolved.server_config.channels)

    seen: set[str] = set()
    channels: list[str] = []
    for name in names:
        name = name.strip()
        if not name:
            continue
        if not name.startswith("#"):
            name = f"#{name}"
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        channels.append(name)
    return channels


async def _call_handler(handler: Callable[..., object], *args: object) -> None:
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class ConnectionMonitor:
    """Owns one client connection and reacts to its events.

    Args:
        account: The resolved account this connection serves.
        client: Client implementing IrcClientProtocol (not yet connected).
        inbound_handler: Receives every dispatched InboundMessage.
        error_handler: Receives a ProtocolError for every client error event.
    """

    def __init__(
        self,
        account: ResolvedAccount,
        client: IrcClientProtocol,
        inbound_handler: InboundHandler | None = None,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        self.account = account
        self.client = client
        self.inbound_handler = inbound_handler
        self.error_handler = error_handler
        self.state = ConnectionState.IDLE
        self._queue: asyncio.Queue[IrcEvent] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._started = False
        self._stopped = False

    @property
    def account_id(self) -> str:
        return self.account.account_id

    @property
    def connected(self) -> bool:
        return not self._stopped and self.client.connected

    @property
    def stopped(self) -> bool:
        return self._stopped

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.log_event(
            "monitor",
            "state",
            level=logging.DEBUG,
            account=self.account_id,
            old=self.state.name,
            new=state.name,
        )
        self.state = state

    async def start(self) -> None:
        """Attach to the client and open the connection.

        Raises whatever ``client.connect()`` raises, after detaching.
        """
        if self._started:
            return
        self._started = True
        self._set_state(ConnectionState.CONNECTING)
        self.client.add_listener(self._on_client_event)
        self._consumer = asyncio.create_task(
            self._consume(), name=f"irc-monitor-{self.account_id}"
        )
        server = self.account.server_config
        logger.log_event(
            "monitor",
            "connecting",
            account=self.account_id,
            host=server.host,
            port=server.resolved_port,
            tls=server.tls,
        )
        try:
            await self.client.connect()
        except Exception:
            self._stopped = True
            self.client.remove_all_listeners()
            await self._stop_consumer()
            self._set_state(ConnectionState.ERRORED)
            raise

    async def stop(self) -> None:
        """Quit the connection and stop dispatching. Safe to call twice."""
        if self._stopped:
            return
        self._stopped = True
        self._set_state(ConnectionState.CLOSING)
        try:
            await asyncio.wait_for(
                self.client.quit("Monitoring stopped"), MONITOR_STOP_TIMEOUT_SECONDS
            )
        except (TimeoutError, OSError, ConnectionError) as e:
            log_error(
                "IRC quit failed",
                e,
                context={"account_id": self.account_id},
                level=logging.WARNING,
            )
        finally:
            self.client.remove_all_listeners()
            await self._stop_consumer()
            self._set_state(ConnectionState.IDLE)
            logger.log_event("monitor", "stopped", account=self.account_id)

    async def _stop_consumer(self) -> None:
        task = self._consumer
        self._consumer = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _on_client_event(self, event: IrcEvent) -> None:
        if self._stopped:
            return
        self._queue.put_nowait(event)

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if not self._stopped:
                    await self._dispatch(event)
            except Exception as e:  # noqa: BLE001
                log_error(
                    "IRC event handler failed",
                    e,
                    context={"account_id": self.account_id, "event": event.kind.value},
                )
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: IrcEvent) -> None:
        handler = {
            EventKind.REGISTERED: self._handle_registered,
            EventKind.MESSAGE: self._handle_message,
            EventKind.NOTICE: self._handle_notice,
            EventKind.JOIN: self._handle_membership,
            EventKind.PART: self._handle_membership,
            EventKind.QUIT: self._handle_membership,
            EventKind.KICK: self._handle_membership,
            EventKind.CTCP_REQUEST: self._handle_ctcp,
            EventKind.ERROR: self._handle_error,
            EventKind.CLOSE: self._handle_close,
        }.get(event.kind)
        if handler is not None:
            await handler(event)

    async def _handle_registered(self, event: IrcEvent) -> None:
        self._set_state(ConnectionState.REGISTERED)
        server = self.account.server_config
        logger.log_event(
            "monitor",
            "registered",
            account=self.account_id,
            host=server.host,
            port=server.resolved_port,
            nick=event.nick or self.client.nick,
        )
        for channel in auto_join_channels(self.account):
            await self.client.join(channel)
            logger.log_event(
                "monitor", "join_requested", level=logging.DEBUG, account=self.account_id, target=channel
            )

    async def _handle_message(self, event: IrcEvent) -> None:
        if not event.nick or event.target is None:
            return
        is_dm = not event.target.startswith("#")
        target = event.nick if is_dm else event.target
        if not is_dm:
            channel_cfg = resolve_channel_config(self.account.config, target)
            if channel_cfg is not None and channel_cfg.enabled is False:
                logger.log_event(
                    "monitor",
                    "message_dropped_disabled",
                    level=logging.DEBUG,
                    account=self.account_id,
                    target=target,
                )
                return
        logger.log_event(
            "monitor",
            "message",
            level=logging.DEBUG,
            account=self.account_id,
            target=target,
            nick=event.nick,
            text=event.message or "",
        )
        if self.inbound_handler is None:
            return
        message = InboundMessage(
            account_id=self.account_id,
            nick=event.nick,
            ident=event.ident,
            hostname=event.hostname,
            target=target,
            text=event.message or "",
            is_dm=is_dm,
        )
        await _call_handler(self.inbound_handler, message)

    async def _handle_notice(self, event: IrcEvent) -> None:
        logger.log_event(
            "monitor",
            "notice",
            level=logging.DEBUG,
            account=self.account_id,
            nick=event.nick or "server",
            text=event.message or "",
        )

    async def _handle_membership(self, event: IrcEvent) -> None:
        logger.log_event(
            "monitor",
            event.kind.value,
            level=logging.DEBUG,
            account=self.account_id,
            target=event.channel,
            nick=event.nick,
            kicked=event.kicked,
            reason=event.reason,
        )

    async def _handle_ctcp(self, event: IrcEvent) -> None:
        if not event.nick:
            return
        ctcp_type = (event.ctcp_type or "").upper()
        reply: str | None
        if ctcp_type == "VERSION":
            reply = CTCP_VERSION_REPLY
        elif ctcp_type == "PING":
            reply = event.params or None
        elif ctcp_type == "TIME":
            reply = datetime.now().astimezone().strftime("%a %b %d %Y %H:%M:%S %Z")
        elif ctcp_type == "SOURCE":
            reply = CTCP_SOURCE_URL
        else:
            reply = None
        if reply is None:
            logger.log_event(
                "monitor",
                "ctcp_ignored",
                level=logging.DEBUG,
                account=self.account_id,
                nick=event.nick,
                ctcp_type=ctcp_type or "?",
            )
            return
        await self.client.ctcp_response(event.nick, ctcp_type, reply)
        logger.log_event(
            "monitor",
            "ctcp_reply",
            level=logging.DEBUG,
            account=self.account_id,
            nick=event.nick,
            ctcp_type=ctcp_type,
        )

    async def _handle_error(self, event: IrcEvent) -> None:
        self._set_state(ConnectionState.ERRORED)
        cause = event.error
        error = ProtocolError(
            str(cause) if cause else "IRC client error",
            data={"account_id": self.account_id},
        )
        error.__cause__ = cause
        log_error("IRC client error", error)
        if self.error_handler is not None:
            await _call_handler(self.error_handler, error)

    async def _handle_close(self, event: IrcEvent) -> None:  # noqa: ARG002
        if self._stopped:
            return
        logger.log_event(
            "monitor", "closed_reconnecting", level=logging.WARNING, account=self.account_id
        )
        self._set_state(ConnectionState.CONNECTING)

    async def say(self, target: str, text: str) -> None:
        await self.client.say(target, text)

    async def notice(self, target: str, text: str) -> None:
        await self.client.notice(target, text)

    async def action(self, target: str, text: str) -> None:
        await self.client.action(target, text)

    async def join(self, channel: str) -> None:
        await self.client.join(channel)

    async def part(self, channel: str, reason: str | None = None) -> None:
        await self.client.part(channel, reason)


__all__ = [
    "ConnectionMonitor",
    "ConnectionState",
    "ErrorHandler",
    "InboundHandler",
    "InboundMessage",
    "auto_join_channels",
]
