from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from ..errors import ConfigurationError
from ..logs.logger import logger
from .model import IrcConfig


def extract_irc_block(data: Any) -> dict[str, Any] | None:
    """Pick the IRC block out of a platform config document.

    Accepts ``{"channels": {"irc": {...}}}``, ``{"irc": {...}}`` or the bare
    IRC block (anything holding ``server`` or ``accounts``).
    """
    if not isinstance(data, dict):
        return None
    channels = data.get("channels")
    if isinstance(channels, dict) and isinstance(channels.get("irc"), dict):
        return channels["irc"]
    if isinstance(data.get("irc"), dict):
        return data["irc"]
    if "server" in data or "accounts" in data:
        return data
    return None


class ConfigRepository:
    """Repository for the JSON configuration file.

    Caches the parsed document by mtime and size so repeated loads from the
    watcher do not re-read an unchanged file.
    """

    def __init__(self, path: str | os.PathLike[str]):
        """Initialize the ConfigRepository.

        Args:
            path: Path to the configuration file.
        """
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)
        self._file_mtime: float | None = None
        self._file_size: int | None = None
        self._cached_block: dict[str, Any] | None = None

    def load_raw(self) -> dict[str, Any] | None:
        """Load the raw IRC block from the file.

        Returns:
            The IRC block as a dict, or None when the file is missing or holds
            no IRC configuration.

        Raises:
            ConfigurationError: If the file exists but is not valid JSON.
        """
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return None
        if (
            self._cached_block is not None
            and self._file_mtime == st.st_mtime
            and self._file_size == st.st_size
        ):
            return self._cached_block
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            raise ConfigurationError(
                f"Configuration file {self.path} is not valid JSON: {e}",
                data={"path": self.path},
            ) from e
        except OSError as e:
            logger.log_event(
                "config", "load_error", level=logging.ERROR, path=self.path, error=str(e)
            )
            return None
        block = extract_irc_block(data)
        self._cached_block = block
        self._file_mtime = st.st_mtime
        self._file_size = st.st_size
        return block

    def load(self) -> IrcConfig | None:
        """Load and validate the IRC configuration.

        Returns:
            A validated IrcConfig, or None when nothing is configured.

        Raises:
            ConfigurationError: If the file is unreadable JSON or fails validation.
        """
        block = self.load_raw()
        if block is None:
            return None
        try:
            return IrcConfig.from_dict(block)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid IRC configuration in {self.path}: {e.error_count()} error(s)\n{e}",
                data={"path": self.path},
            ) from e


def load_irc_config(path: str | os.PathLike[str]) -> IrcConfig | None:
    """Load and validate the IRC configuration from ``path``."""
    return ConfigRepository(path).load()
