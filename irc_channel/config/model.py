"""Typed IRC configuration model.

Config files use camelCase keys (``requireMention``, ``allowFrom``); Python
code uses the snake_case attribute names. Every model is frozen: a reload
builds a fresh tree and swaps it in wholesale.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..constants import IRC_DEFAULT_PLAIN_PORT, IRC_DEFAULT_TLS_PORT


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class SaslConfig(_Frozen):
    account: str
    password: str


class NickServConfig(_Frozen):
    password: str


class ServerConfig(_Frozen):
    """Connection settings for one IRC server identity.

    Attributes:
        host: Server hostname (e.g. irc.libera.chat).
        port: Server port; defaults to 6697 with TLS and 6667 without.
        tls: Whether to connect over TLS (default true).
        password: Optional server password (PASS).
        nick: Nickname for the bot.
        username: Ident; defaults to the nick.
        gecos: Real name; defaults to the nick.
        sasl: Optional SASL PLAIN credentials.
        nickserv: Optional NickServ password (legacy identify).
        channels: Extra channels joined after registration.
    """

    host: str = Field(min_length=1)
    port: int | None = Field(default=None, ge=1, le=65535)
    tls: bool = True
    password: str | None = None
    nick: str = Field(min_length=1)
    username: str | None = None
    gecos: str | None = None
    sasl: SaslConfig | None = None
    nickserv: NickServConfig | None = None
    channels: list[str] = Field(default_factory=list)

    @property
    def resolved_port(self) -> int:
        if self.port:
            return self.port
        return IRC_DEFAULT_TLS_PORT if self.tls else IRC_DEFAULT_PLAIN_PORT

    @property
    def resolved_username(self) -> str:
        return self.username or self.nick

    @property
    def resolved_gecos(self) -> str:
        return self.gecos or self.nick


class ChannelConfig(_Frozen):
    """Per-channel policy. ``users`` is None when no allowlist is set."""

    allow: bool | None = None
    enabled: bool | None = None
    users: list[str] | None = None
    require_mention: bool | None = None
    tools: dict[str, Any] | None = None
    tools_by_sender: dict[str, Any] | None = None
    skills: list[str] | None = None
    system_prompt: str | None = None


class NetworkEntry(_Frozen):
    """Named group of channels plus network-level policy overrides."""

    slug: str | None = None
    require_mention: bool | None = None
    tools: dict[str, Any] | None = None
    tools_by_sender: dict[str, Any] | None = None
    users: list[str] | None = None
    channels: dict[str, ChannelConfig] = Field(default_factory=dict)

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> Any:
        """Allow ``null`` entries (``"#chan": null``) as an empty channel config."""
        if isinstance(v, Mapping):
            return {str(k): ({} if cfg is None else cfg) for k, cfg in v.items()}
        return v


class DmConfig(_Frozen):
    enabled: bool = True
    policy: str | None = None
    allow_from: list[str] = Field(default_factory=list)

    @field_validator("allow_from", mode="before")
    @classmethod
    def validate_allow_from(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("allowFrom must be a list")
        return [str(entry) for entry in v]


class AccountConfig(_Frozen):
    """One configured IRC account (server identity + channel policy)."""

    enabled: bool = True
    server: ServerConfig | None = None
    group_policy: str | None = None
    networks: dict[str, NetworkEntry] = Field(default_factory=dict)
    dm: DmConfig = Field(default_factory=DmConfig)
    command_prefix: str = "!"
    history_limit: int | None = Field(default=None, ge=0)
    split_messages: bool = True
    split_prefix: str | None = None

    def iter_channels(self) -> list[tuple[str, str, ChannelConfig]]:
        """Return ``(network, channel, config)`` for every configured channel."""
        return [
            (network_name, channel_name, channel_cfg)
            for network_name, network in self.networks.items()
            for channel_name, channel_cfg in network.channels.items()
        ]


class IrcConfig(AccountConfig):
    """Root IRC block.

    Single-account mode uses the inherited top-level fields; multi-account
    mode fills ``accounts``.
    """

    accounts: dict[str, AccountConfig] | None = None

    @property
    def is_multi_account(self) -> bool:
        return self.accounts is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IrcConfig:
        """Create an IrcConfig from a raw mapping (validated once, here)."""
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
