"""
Configuration file watcher for runtime config changes
"""

import asyncio
import concurrent.futures
import inspect
import logging
import os
from collections.abc import Callable
from typing import Any

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ..errors import ConfigurationError, log_error
from ..logs.logger import logger
from .model import IrcConfig
from .repository import ConfigRepository

ReloadCallback = Callable[[IrcConfig], Any]


class ConfigFileHandler(FileSystemEventHandler):
    """File system event handler for config file changes"""

    last_modified: float

    def __init__(self, config_file: str, watcher_instance: "ConfigWatcher"):
        super().__init__()
        self.config_file = os.path.abspath(config_file)
        self.watcher = watcher_instance
        self.last_modified = 0.0

    def _should_process(self) -> bool:
        """Check if the config file's mtime advanced since last processed."""
        try:
            mtime = os.path.getmtime(self.config_file)
        except FileNotFoundError:
            return False
        if mtime <= self.last_modified:
            return False
        self.last_modified = mtime
        return True

    def _handle_event(self, src_path: str) -> None:
        if os.path.abspath(src_path) != self.config_file:
            return
        if self._should_process():
            self.watcher._on_config_changed()  # noqa: SLF001

    def on_modified(self, event):
        self._handle_event(getattr(event, "src_path", ""))

    def on_created(self, event):
        self._handle_event(getattr(event, "src_path", ""))

    def on_moved(self, event):
        # Editors that save atomically rename a temp file over the original
        dest = getattr(event, "dest_path", None) or getattr(event, "src_path", "")
        self._handle_event(dest)


class ConfigWatcher:
    """Watches the config file and hands each valid reload to a callback.

    The callback receives a freshly validated IrcConfig. When ``loop`` is
    given, the callback is scheduled on that loop (coroutine callbacks are
    awaited there); otherwise it runs on the watchdog thread.
    """

    observer: Any | None
    running: bool

    def __init__(
        self,
        config_file: str,
        reload_callback: ReloadCallback,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.config_file = config_file
        self.reload_callback = reload_callback
        self.loop = loop
        self.repository = ConfigRepository(config_file)
        self.observer = None
        self.running = False

    def start(self) -> None:
        """Start watching the config file"""
        if self.running:
            return

        config_dir = os.path.dirname(os.path.abspath(self.config_file))
        if not os.path.exists(config_dir):
            logger.log_event(
                "config_watch", "dir_missing", level=logging.WARNING, path=config_dir
            )
            return

        observer = Observer()
        observer.schedule(
            ConfigFileHandler(self.config_file, self), config_dir, recursive=False
        )
        try:
            observer.start()
        except OSError as e:
            logger.log_event(
                "config_watch", "start_failed", level=logging.ERROR, error=str(e)
            )
            return
        self.observer = observer
        self.running = True
        logger.log_event("config_watch", "start", path=self.config_file)

    def stop(self) -> None:
        """Stop watching the config file"""
        obs = self.observer
        if self.running and obs is not None:
            try:
                obs.stop()
                obs.join()
            finally:
                self.running = False
                self.observer = None
                logger.log_event("config_watch", "stopped")

    def _on_config_changed(self) -> None:
        """Reload, validate and dispatch the new configuration."""
        try:
            new_config = self.repository.load()
        except ConfigurationError as e:
            # Keep running on the previous config until the file is fixed
            logger.log_event(
                "config_watch", "invalid", level=logging.ERROR, error=str(e)
            )
            return
        if new_config is None:
            logger.log_event("config_watch", "empty", level=logging.WARNING)
            return

        logger.log_event("config_watch", "reloaded", path=self.config_file)
        if self.loop is None:
            self.reload_callback(new_config)
        elif inspect.iscoroutinefunction(self.reload_callback):
            future = asyncio.run_coroutine_threadsafe(
                self.reload_callback(new_config), self.loop
            )
            future.add_done_callback(self._on_reload_done)
        else:
            self.loop.call_soon_threadsafe(self.reload_callback, new_config)

    def _on_reload_done(self, future: concurrent.futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log_error(
                "Config reload callback failed",
                exc,
                context={"path": self.config_file},
            )


async def create_config_watcher(
    config_file: str, reload_callback: ReloadCallback
) -> ConfigWatcher:
    """Create and start a config file watcher bound to the running loop."""
    loop = asyncio.get_running_loop()
    watcher = ConfigWatcher(config_file, reload_callback, loop=loop)
    await loop.run_in_executor(None, watcher.start)
    return watcher
