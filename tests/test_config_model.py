"""
Tests for the typed IRC configuration model
"""

import pytest
from pydantic import ValidationError

from irc_channel.config import IrcConfig, ServerConfig
from tests.fixtures.sample_configs import MULTI_ACCOUNT_CONFIG, SINGLE_ACCOUNT_CONFIG


class TestServerConfig:
    def test_port_defaults_follow_tls(self):
        assert ServerConfig(host="h", nick="n").resolved_port == 6697
        assert ServerConfig(host="h", nick="n", tls=False).resolved_port == 6667
        assert ServerConfig(host="h", nick="n", port=7000).resolved_port == 7000

    def test_identity_defaults_to_nick(self):
        server = ServerConfig(host="h", nick="clawbot")
        assert server.resolved_username == "clawbot"
        assert server.resolved_gecos == "clawbot"
        server = ServerConfig(host="h", nick="clawbot", username="claw", gecos="Claw Bot")
        assert server.resolved_username == "claw"
        assert server.resolved_gecos == "Claw Bot"

    @pytest.mark.parametrize("data", [
        {"nick": "n"},
        {"host": "", "nick": "n"},
        {"host": "h", "nick": "n", "port": 70000},
    ])
    def test_invalid_server(self, data):
        with pytest.raises(ValidationError):
            ServerConfig.model_validate(data)

    def test_sasl_and_nickserv_from_camel_case(self):
        server = ServerConfig.model_validate(
            {
                "host": "h",
                "nick": "n",
                "sasl": {"account": "acct", "password": "pw"},
                "nickserv": {"password": "ns"},
            }
        )
        assert server.sasl.account == "acct"
        assert server.nickserv.password == "ns"


class TestIrcConfig:
    def test_single_account_fields(self):
        cfg = IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG)
        assert cfg.is_multi_account is False
        assert cfg.split_prefix == "»"
        assert cfg.dm.allow_from == ["alice", " Bob ", ""]
        general = cfg.networks["libera"].channels["#general"]
        assert general.require_mention is True
        assert general.users is None

    def test_multi_account_fields(self):
        cfg = IrcConfig.from_dict(MULTI_ACCOUNT_CONFIG)
        assert cfg.is_multi_account is True
        assert cfg.accounts["oftc"].split_messages is False
        assert cfg.accounts["broken"].server is None
        assert cfg.accounts["disabled"].enabled is False

    def test_iter_channels(self):
        cfg = IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG)
        assert [(n, c) for n, c, _ in cfg.iter_channels()] == [
            ("libera", "#general"),
            ("libera", "#ops"),
            ("libera", "quiet"),
        ]

    def test_null_channel_entry(self):
        cfg = IrcConfig.from_dict({"networks": {"n": {"channels": {"#x": None}}}})
        assert cfg.networks["n"].channels["#x"].enabled is None

    def test_allow_from_must_be_list(self):
        with pytest.raises(ValidationError):
            IrcConfig.from_dict({"dm": {"allowFrom": "alice"}})

    def test_models_are_frozen(self):
        cfg = IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG)
        with pytest.raises(ValidationError):
            cfg.enabled = False

    def test_unknown_keys_are_ignored(self):
        cfg = IrcConfig.from_dict({"server": {"host": "h", "nick": "n"}, "mystery": 1})
        assert cfg.server.host == "h"

    def test_to_dict_uses_camel_case(self):
        data = IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG).to_dict()
        assert data["splitPrefix"] == "»"
        assert data["dm"]["allowFrom"] == ["alice", " Bob ", ""]
        assert IrcConfig.from_dict(data) == IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG)
