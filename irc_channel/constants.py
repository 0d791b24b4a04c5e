"""
Configuration constants for the IRC channel core

This module contains all configurable constants used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Account addressing
DEFAULT_ACCOUNT_ID = "default"  # Synthetic id for single-account mode
TARGET_KEY_PREFIX = "irc"  # Canonical target keys look like irc:<account>:<target>

# Server defaults
IRC_DEFAULT_TLS_PORT = _get_env_int("IRC_DEFAULT_TLS_PORT", 6697)
IRC_DEFAULT_PLAIN_PORT = _get_env_int("IRC_DEFAULT_PLAIN_PORT", 6667)
IRC_TLS_VERIFY = os.getenv("IRC_TLS_VERIFY", "true").lower() in ("true", "1", "yes")

# Outbound delivery
IRC_MAX_MESSAGE_BYTES = _get_env_int(
    "IRC_MAX_MESSAGE_BYTES", 400
)  # Below the 512 byte wire ceiling to leave room for prefix/routing overhead
IRC_CHUNK_DELAY_SECONDS = _get_env_float(
    "IRC_CHUNK_DELAY_SECONDS", 0.5
)  # Pause between chunks of one logical message (flood protection)
IRC_SPLIT_NEWLINE_WINDOW = _get_env_int(
    "IRC_SPLIT_NEWLINE_WINDOW", 100
)  # Newline cut accepted within this many bytes of the budget
IRC_SPLIT_SPACE_WINDOW = _get_env_int(
    "IRC_SPLIT_SPACE_WINDOW", 50
)  # Space / punctuation cut accepted within this many bytes of the budget
IRC_CONTINUATION_MARKER = " ..."  # Appended to every chunk except the last

# Probe
IRC_PROBE_TIMEOUT_MS = _get_env_int(
    "IRC_PROBE_TIMEOUT_MS", 5000
)  # Default probe timeout in milliseconds

# Client reconnect (delegated to the external client)
IRC_RECONNECT_MAX_ATTEMPTS = _get_env_int(
    "IRC_RECONNECT_MAX_ATTEMPTS", 0
)  # 0 means unlimited

# Monitor / registry
MONITOR_STOP_TIMEOUT_SECONDS = _get_env_float(
    "MONITOR_STOP_TIMEOUT_SECONDS", 2.0
)  # Grace period for the event consumer to drain on stop

# CTCP auto-responses
CTCP_VERSION_REPLY = "irc-channel IRC Bot v1.0"
CTCP_SOURCE_URL = "https://github.com/irc-channel/irc-channel"
