"""
Unit tests for the pydle adapter

The pydle connection itself is replaced by mocks; only the translation
between pydle hooks/methods and IrcEvent / IrcClientProtocol is exercised.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pydle
import pytest
from pydle.features.rfc1459.parsing import RFC1459Message

from irc_channel.accounts import resolve_account
from irc_channel.client import EventKind, IrcEvent, PydleIrcClient, create_pydle_client
from irc_channel.config import IrcConfig, ServerConfig
from irc_channel.constants import CTCP_VERSION_REPLY
from irc_channel.monitor import ConnectionMonitor


def _server(**overrides):
    data = {"host": "irc.libera.chat", "nick": "clawbot"}
    data.update(overrides)
    return ServerConfig.model_validate(data)


def _inner_mock(connected=True):
    inner = MagicMock()
    inner.connected = connected
    inner.nickname = "clawbot_"
    inner.channels = {"#general": {}, "#ops": {}}
    for name in ("connect", "quit", "message", "notice", "ctcp", "ctcp_reply", "join", "part"):
        setattr(inner, name, AsyncMock())
    return inner


class TestConstruction:
    @pytest.mark.asyncio
    async def test_identity_and_reconnect_flags(self):
        client = create_pydle_client(_server(username="claw", gecos="Claw Bot"), auto_reconnect=False)
        assert isinstance(client, PydleIrcClient)
        assert isinstance(client._client, pydle.Client)
        assert client._client.username == "claw"
        assert client._client.realname == "Claw Bot"
        assert client._client.RECONNECT_ON_ERROR is False

    @pytest.mark.asyncio
    async def test_nick_before_registration_is_configured_nick(self):
        client = PydleIrcClient(_server())
        assert client.nick == "clawbot"
        assert client.connected is False


class TestOutbound:
    def setup_method(self):
        self.inner = _inner_mock()

    @pytest.fixture
    def client(self):
        with patch.object(PydleIrcClient, "_build_client", return_value=self.inner):
            yield PydleIrcClient(_server(tls=False, password="secret"))

    @pytest.mark.asyncio
    async def test_connect_arguments(self, client):
        await client.connect()
        self.inner.connect.assert_awaited_once_with(
            hostname="irc.libera.chat",
            port=6667,
            tls=False,
            tls_verify=False,
            password="secret",
        )

    @pytest.mark.asyncio
    async def test_send_methods(self, client):
        await client.say("#general", "hi")
        await client.notice("bob", "psst")
        await client.action("#general", "waves")
        await client.ctcp_request("bob", "VERSION")
        await client.ctcp_response("bob", "PING", "123")
        await client.join("#new")
        await client.part("#new", "bye")
        self.inner.message.assert_awaited_once_with("#general", "hi")
        self.inner.notice.assert_awaited_once_with("bob", "psst")
        self.inner.ctcp.assert_any_await("#general", "ACTION", "waves")
        self.inner.ctcp.assert_any_await("bob", "VERSION", None)
        self.inner.ctcp_reply.assert_awaited_once_with("bob", "PING", "123")
        self.inner.join.assert_awaited_once_with("#new")
        self.inner.part.assert_awaited_once_with("#new", "bye")

    @pytest.mark.asyncio
    async def test_quit_only_when_connected(self, client):
        await client.quit("bye")
        self.inner.quit.assert_awaited_once_with("bye")
        self.inner.connected = False
        await client.quit("again")
        assert self.inner.quit.await_count == 1

    def test_channel_list(self, client):
        assert client.channel_list() == ["#general", "#ops"]


class TestEvents:
    def test_listener_failure_does_not_block_others(self):
        with patch.object(PydleIrcClient, "_build_client", return_value=_inner_mock()):
            client = PydleIrcClient(_server())
        seen = []

        def broken(event):
            raise RuntimeError("listener bug")

        client.add_listener(broken)
        client.add_listener(seen.append)
        event = IrcEvent(kind=EventKind.CLOSE)
        client._emit(event)
        assert seen == [event]

        client.remove_all_listeners()
        client._emit(event)
        assert seen == [event]

    @pytest.mark.asyncio
    async def test_hooks_translate_to_events(self):
        client = PydleIrcClient(_server())
        conn = client._client
        conn.users["bob"] = {"username": "bobby", "hostname": "bob.example"}
        seen = []
        client.add_listener(seen.append)

        with (
            patch.object(pydle.Client, "on_message", new=AsyncMock()),
            patch.object(pydle.Client, "on_kick", new=AsyncMock()),
        ):
            await conn.on_message("#general", "bob", "hello")
            await conn.on_kick("#general", "eve", "bob", "spam")
        await conn.on_ctcp("bob", "clawbot", "VERSION", None)
        await conn.on_ctcp("bob", "clawbot", "PING", "42")

        message, kick, version, ping = seen
        assert message.kind is EventKind.MESSAGE
        assert (message.nick, message.ident, message.hostname) == ("bob", "bobby", "bob.example")
        assert (message.target, message.message) == ("#general", "hello")
        assert (kick.kind, kick.kicked, kick.reason) == (EventKind.KICK, "eve", "spam")
        assert (version.ctcp_type, version.params) == ("VERSION", None)
        assert (ping.ctcp_type, ping.params) == ("PING", "42")

    @pytest.mark.asyncio
    async def test_connect_hook_identifies_with_nickserv(self):
        client = PydleIrcClient(_server(nickserv={"password": "ns-pass"}))
        conn = client._client
        seen = []
        client.add_listener(seen.append)
        with (
            patch.object(pydle.Client, "on_connect", new=AsyncMock()),
            patch.object(type(conn), "message", new=AsyncMock()) as message,
        ):
            await conn.on_connect()
        message.assert_awaited_once_with("NickServ", "IDENTIFY ns-pass")
        assert seen[0].kind is EventKind.REGISTERED


class TestCtcpDispatch:
    """Requests arriving as raw PRIVMSG lines go through pydle's own CTCP routing."""

    def setup_method(self):
        self.client = PydleIrcClient(_server())
        self.conn = self.client._client

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ctcp_type", ["VERSION", "PING", "TIME", "SOURCE", "FINGER"])
    async def test_one_event_per_request(self, ctcp_type):
        seen = []
        self.client.add_listener(seen.append)
        line = f":bob!b@host PRIVMSG clawbot :\x01{ctcp_type}\x01".encode()
        with patch.object(type(self.conn), "ctcp_reply", new=AsyncMock()) as builtin_reply:
            await self.conn.on_raw_privmsg(RFC1459Message.parse(line))
        builtin_reply.assert_not_called()
        assert [(e.kind, e.nick, e.ctcp_type) for e in seen] == [
            (EventKind.CTCP_REQUEST, "bob", ctcp_type)
        ]

    @pytest.mark.asyncio
    async def test_monitor_answers_version_once(self):
        account = resolve_account(
            IrcConfig.from_dict({"server": {"host": "irc.libera.chat", "nick": "clawbot"}})
        )
        with (
            patch.object(self.client, "connect", new=AsyncMock()),
            patch.object(self.client, "ctcp_response", new=AsyncMock()) as ctcp_response,
        ):
            monitor = ConnectionMonitor(account, self.client)
            await monitor.start()
            await self.conn.on_raw_privmsg(
                RFC1459Message.parse(b":bob!b@host PRIVMSG clawbot :\x01VERSION\x01")
            )
            await monitor._queue.join()
            await monitor.stop()
        ctcp_response.assert_awaited_once_with("bob", "VERSION", CTCP_VERSION_REPLY)
