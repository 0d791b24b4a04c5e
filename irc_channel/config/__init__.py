"""Configuration package exports.

Typed model, JSON repository and file watcher for the IRC block.
"""

from .model import (  # noqa: F401
    AccountConfig,
    ChannelConfig,
    DmConfig,
    IrcConfig,
    NetworkEntry,
    NickServConfig,
    SaslConfig,
    ServerConfig,
)
from .repository import ConfigRepository, extract_irc_block, load_irc_config
from .watcher import ConfigWatcher, create_config_watcher

__all__ = [
    "AccountConfig",
    "ChannelConfig",
    "ConfigRepository",
    "ConfigWatcher",
    "DmConfig",
    "IrcConfig",
    "NetworkEntry",
    "NickServConfig",
    "SaslConfig",
    "ServerConfig",
    "create_config_watcher",
    "extract_irc_block",
    "load_irc_config",
]
