"""One-shot connectivity probe for an IRC server configuration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any

from .client.protocols import ClientFactory, EventKind, IrcClientProtocol, IrcEvent
from .client.pydle_client import create_pydle_client
from .config.model import ServerConfig
from .constants import IRC_PROBE_TIMEOUT_MS
from .errors import IrcConnectionError, ProtocolError
from .logs.logger import logger


@dataclass
class ProbeResult:
    ok: bool = False
    connected: bool = False
    error: str | None = None
    host: str | None = None
    port: int | None = None
    nick: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class ProbeService:
    """Races registration against a timer using a throwaway client.

    Probe clients never auto-reconnect and share nothing with the
    connections held by the registry.
    """

    def __init__(self, client_factory: ClientFactory = create_pydle_client):
        self.client_factory = client_factory

    async def probe(
        self, server_config: ServerConfig, timeout_ms: int = IRC_PROBE_TIMEOUT_MS
    ) -> ProbeResult:
        """Probe ``server_config``; failures are reported, never raised."""
        result = ProbeResult(
            host=server_config.host or "localhost",
            port=server_config.resolved_port,
            nick=server_config.nick or "probe",
        )
        logger.log_event(
            "probe",
            "start",
            level=logging.DEBUG,
            host=result.host,
            port=result.port,
            timeout_ms=timeout_ms,
        )
        client = self.client_factory(server_config, False)
        registered: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        def on_event(event: IrcEvent) -> None:
            if registered.done():
                return
            if event.kind is EventKind.REGISTERED:
                registered.set_result(event.nick or client.nick)
            elif event.kind is EventKind.ERROR:
                registered.set_exception(
                    ProtocolError(str(event.error) if event.error else "IRC client error")
                )
            elif event.kind is EventKind.CLOSE:
                registered.set_exception(IrcConnectionError("Connection closed"))

        async def attempt() -> str:
            await client.connect()
            return await registered

        client.add_listener(on_event)
        try:
            result.nick = await asyncio.wait_for(attempt(), timeout_ms / 1000)
            result.ok = True
            result.connected = True
        except TimeoutError:
            result.error = f"IRC probe timeout after {timeout_ms}ms"
        except Exception as e:  # noqa: BLE001
            result.error = str(e) or type(e).__name__
        finally:
            await self._cleanup(client, registered)

        if result.ok:
            logger.log_event(
                "probe", "ok", host=result.host, port=result.port, nick=result.nick
            )
        else:
            logger.log_event(
                "probe",
                "failed",
                level=logging.WARNING,
                host=result.host,
                port=result.port,
                error=result.error,
            )
        return result

    @staticmethod
    async def _cleanup(client: IrcClientProtocol, registered: asyncio.Future[str]) -> None:
        client.remove_all_listeners()
        if registered.done() and not registered.cancelled():
            registered.exception()
        else:
            registered.cancel()
        try:
            await client.quit("Probe complete")
        except (OSError, ConnectionError) as e:
            logger.log_event(
                "probe", "quit_failed", level=logging.DEBUG, error=str(e)
            )


async def probe_server(
    server_config: ServerConfig, timeout_ms: int = IRC_PROBE_TIMEOUT_MS
) -> ProbeResult:
    """Probe with the default pydle client."""
    return await ProbeService().probe(server_config, timeout_ms)


__all__ = ["ProbeResult", "ProbeService", "probe_server"]
