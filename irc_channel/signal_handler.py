"""SignalHandler - turns SIGINT/SIGTERM into an orderly shutdown."""

import asyncio
import logging
import signal


class SignalHandler:
    """Sets an asyncio.Event the main loop waits on."""

    def __init__(self) -> None:
        self.shutdown_event = asyncio.Event()

    @property
    def shutdown_initiated(self) -> bool:
        return self.shutdown_event.is_set()

    def stop(self, signum: int | None = None) -> None:
        # Idempotent: only the first signal is reported
        if self.shutdown_event.is_set():
            return
        logging.warning(f"🛑 Signal received - initiating shutdown (signal={signum})")
        self.shutdown_event.set()

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:  # pragma: no cover
        """Register SIGINT/SIGTERM on ``loop`` for graceful shutdown."""
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.stop, signum)
            except NotImplementedError:
                # Event loops without signal support (Windows)
                signal.signal(signum, lambda s, _f: loop.call_soon_threadsafe(self.stop, s))

    async def wait(self) -> None:
        await self.shutdown_event.wait()
