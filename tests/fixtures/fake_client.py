"""
Recording IRC client used in place of the pydle-backed one
"""

from irc_channel.client.protocols import EventKind, IrcEvent


class FakeIrcClient:
    """In-memory IrcClientProtocol implementation.

    Records every call in ``calls`` and lets tests push events with the
    ``emit_*`` helpers. No network is touched.
    """

    def __init__(
        self,
        server_config=None,
        auto_reconnect=True,
        *,
        nick="bot",
        connect_error=None,
        register_on_connect=False,
        send_error=None,
    ):
        self.server_config = server_config
        self.auto_reconnect = auto_reconnect
        self._nick = nick
        self._connected = False
        self.connect_error = connect_error
        self.register_on_connect = register_on_connect
        self.send_error = send_error
        self.listeners = []
        self.calls = []
        self.joined = []
        self.quit_calls = 0

    @property
    def nick(self):
        return self._nick

    @property
    def connected(self):
        return self._connected

    @connected.setter
    def connected(self, value):
        self._connected = value

    async def connect(self):
        self.calls.append(("connect",))
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True
        if self.register_on_connect:
            self.emit_registered()

    async def quit(self, reason=None):
        self.quit_calls += 1
        self.calls.append(("quit", reason))
        self._connected = False

    async def _send(self, kind, target, text):
        if self.send_error is not None:
            raise self.send_error
        self.calls.append((kind, target, text))

    async def say(self, target, text):
        await self._send("say", target, text)

    async def notice(self, target, text):
        await self._send("notice", target, text)

    async def action(self, target, text):
        await self._send("action", target, text)

    async def join(self, channel):
        self.calls.append(("join", channel))
        self.joined.append(channel)

    async def part(self, channel, reason=None):
        self.calls.append(("part", channel, reason))
        if channel in self.joined:
            self.joined.remove(channel)

    async def ctcp_request(self, target, ctcp_type, params=None):
        self.calls.append(("ctcp_request", target, ctcp_type, params))

    async def ctcp_response(self, target, ctcp_type, params):
        self.calls.append(("ctcp_response", target, ctcp_type, params))

    def channel_list(self):
        return list(self.joined)

    def add_listener(self, listener):
        self.listeners.append(listener)

    def remove_all_listeners(self):
        self.listeners.clear()

    # ---- test helpers ---------------------------------------------------

    @property
    def sent(self):
        return [c for c in self.calls if c[0] in ("say", "notice", "action")]

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    def emit(self, event):
        for listener in list(self.listeners):
            listener(event)

    def emit_registered(self, nick=None):
        self.emit(IrcEvent(kind=EventKind.REGISTERED, nick=nick or self._nick))

    def emit_message(self, nick, target, text, ident="user", hostname="host.example.com"):
        self.emit(
            IrcEvent(
                kind=EventKind.MESSAGE,
                nick=nick,
                ident=ident,
                hostname=hostname,
                target=target,
                message=text,
            )
        )

    def emit_ctcp(self, nick, ctcp_type, params=None, target="bot"):
        self.emit(
            IrcEvent(
                kind=EventKind.CTCP_REQUEST,
                nick=nick,
                target=target,
                ctcp_type=ctcp_type,
                params=params,
            )
        )

    def emit_error(self, error):
        self.emit(IrcEvent(kind=EventKind.ERROR, error=error))

    def emit_close(self):
        self._connected = False
        self.emit(IrcEvent(kind=EventKind.CLOSE))


class FakeClientFactory:
    """ClientFactory that builds FakeIrcClient instances and keeps them."""

    def __init__(self, **client_kwargs):
        self.client_kwargs = client_kwargs
        self.clients = []

    def __call__(self, server_config, auto_reconnect):
        client = FakeIrcClient(server_config, auto_reconnect, **self.client_kwargs)
        self.clients.append(client)
        return client
