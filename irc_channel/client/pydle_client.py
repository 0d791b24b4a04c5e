"""pydle-backed implementation of IrcClientProtocol.

pydle owns the wire protocol, SASL negotiation and reconnection. This module
only translates its ``on_*`` hooks into ``IrcEvent`` values and its send
methods into the protocol surface used by the rest of the package.
"""

from __future__ import annotations

import logging
from typing import Any

import pydle

from ..config.model import ServerConfig
from ..constants import IRC_RECONNECT_MAX_ATTEMPTS, IRC_TLS_VERIFY
from ..logs.logger import logger
from .protocols import EventKind, EventListener, IrcEvent


class _PydleConnection(pydle.Client):
    """pydle client forwarding every hook to its owning PydleIrcClient."""

    def __init__(self, owner: PydleIrcClient, nickname: str, **kwargs: Any):
        super().__init__(nickname, **kwargs)
        self._owner = owner

    def _user_info(self, nick: str | None) -> tuple[str | None, str | None]:
        info = self.users.get(nick) if nick else None
        if not info:
            return None, None
        return info.get("username"), info.get("hostname")

    def _sender_event(self, kind: EventKind, nick: str | None, **fields: Any) -> IrcEvent:
        ident, hostname = self._user_info(nick)
        return IrcEvent(kind=kind, nick=nick, ident=ident, hostname=hostname, **fields)

    async def on_connect(self):
        await super().on_connect()
        nickserv = self._owner.server_config.nickserv
        if nickserv and not self._owner.server_config.sasl:
            await self.message("NickServ", f"IDENTIFY {nickserv.password}")
        self._owner._registered = True  # noqa: SLF001
        self._owner._emit(IrcEvent(kind=EventKind.REGISTERED, nick=self.nickname))  # noqa: SLF001

    async def on_message(self, target, by, message):
        await super().on_message(target, by, message)
        self._owner._emit(  # noqa: SLF001
            self._sender_event(EventKind.MESSAGE, by, target=target, message=message)
        )

    async def on_notice(self, target, by, message):
        await super().on_notice(target, by, message)
        self._owner._emit(  # noqa: SLF001
            self._sender_event(EventKind.NOTICE, by, target=target, message=message)
        )

    async def on_join(self, channel, user):
        await super().on_join(channel, user)
        self._owner._emit(self._sender_event(EventKind.JOIN, user, channel=channel))  # noqa: SLF001

    async def on_part(self, channel, user, message=None):
        await super().on_part(channel, user, message)
        self._owner._emit(  # noqa: SLF001
            self._sender_event(EventKind.PART, user, channel=channel, reason=message)
        )

    async def on_quit(self, user, message=None):
        await super().on_quit(user, message)
        self._owner._emit(self._sender_event(EventKind.QUIT, user, reason=message))  # noqa: SLF001

    async def on_kick(self, channel, target, by, reason=None):
        await super().on_kick(channel, target, by, reason)
        self._owner._emit(  # noqa: SLF001
            self._sender_event(
                EventKind.KICK, by, channel=channel, kicked=target, reason=reason
            )
        )

    def _ctcp_event(self, by, target, what, contents) -> IrcEvent:
        return self._sender_event(
            EventKind.CTCP_REQUEST,
            by,
            target=target,
            ctcp_type=str(what).upper(),
            params=contents or None,
        )

    async def on_ctcp(self, by, target, what, contents):
        await super().on_ctcp(by, target, what, contents)
        self._owner._emit(self._ctcp_event(by, target, what, contents))  # noqa: SLF001

    # pydle calls the typed handler and then on_ctcp for every request.
    # These overrides only silence pydle's built-in replies; the event is
    # emitted once from on_ctcp and answered by the monitor.
    async def on_ctcp_version(self, by, target, contents):
        pass

    async def on_ctcp_ping(self, by, target, contents):
        pass

    async def on_ctcp_time(self, by, target, contents):
        pass

    async def on_ctcp_source(self, by, target, contents):
        pass

    async def on_raw_error(self, message):
        params = getattr(message, "params", None) or []
        text = " ".join(str(p) for p in params) or "server error"
        self._owner._emit(IrcEvent(kind=EventKind.ERROR, error=ConnectionError(text)))  # noqa: SLF001
        await super().on_raw_error(message)

    async def on_disconnect(self, expected):
        self._owner._registered = False  # noqa: SLF001
        self._owner._emit(IrcEvent(kind=EventKind.CLOSE))  # noqa: SLF001
        await super().on_disconnect(expected)


class PydleIrcClient:
    """One IRC connection for one ServerConfig.

    Args:
        server_config: Host, identity and credentials to use.
        auto_reconnect: Let pydle reconnect after unexpected disconnects.
            Probes pass False.
    """

    def __init__(self, server_config: ServerConfig, auto_reconnect: bool = True):
        self.server_config = server_config
        self.auto_reconnect = auto_reconnect
        self._listeners: list[EventListener] = []
        self._registered = False
        self._client = self._build_client()

    def _build_client(self) -> _PydleConnection:
        cfg = self.server_config
        kwargs: dict[str, Any] = {
            "username": cfg.resolved_username,
            "realname": cfg.resolved_gecos,
        }
        if cfg.sasl:
            kwargs["sasl_username"] = cfg.sasl.account
            kwargs["sasl_password"] = cfg.sasl.password
        client = _PydleConnection(self, cfg.nick, **kwargs)
        client.RECONNECT_ON_ERROR = self.auto_reconnect
        client.RECONNECT_MAX_ATTEMPTS = IRC_RECONNECT_MAX_ATTEMPTS or None
        return client

    @property
    def nick(self) -> str:
        # pydle holds a placeholder nickname until registration completes
        if self._registered and self._client.nickname:
            return self._client.nickname
        return self.server_config.nick

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    def _emit(self, event: IrcEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "client",
                    "listener_error",
                    level=logging.ERROR,
                    event=event.kind.value,
                    error=str(e),
                )

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    async def connect(self) -> None:
        cfg = self.server_config
        await self._client.connect(
            hostname=cfg.host,
            port=cfg.resolved_port,
            tls=cfg.tls,
            tls_verify=IRC_TLS_VERIFY if cfg.tls else False,
            password=cfg.password,
        )

    async def quit(self, reason: str | None = None) -> None:
        if not self._client.connected:
            return
        await self._client.quit(reason)

    async def say(self, target: str, text: str) -> None:
        await self._client.message(target, text)

    async def notice(self, target: str, text: str) -> None:
        await self._client.notice(target, text)

    async def action(self, target: str, text: str) -> None:
        await self._client.ctcp(target, "ACTION", text)

    async def join(self, channel: str) -> None:
        await self._client.join(channel)

    async def part(self, channel: str, reason: str | None = None) -> None:
        await self._client.part(channel, reason)

    async def ctcp_request(self, target: str, ctcp_type: str, params: str | None = None) -> None:
        await self._client.ctcp(target, ctcp_type, params)

    async def ctcp_response(self, target: str, ctcp_type: str, params: str) -> None:
        await self._client.ctcp_reply(target, ctcp_type, params)

    def channel_list(self) -> list[str]:
        return list(self._client.channels)


def create_pydle_client(server_config: ServerConfig, auto_reconnect: bool = True) -> PydleIrcClient:
    """Default ClientFactory."""
    return PydleIrcClient(server_config, auto_reconnect)
