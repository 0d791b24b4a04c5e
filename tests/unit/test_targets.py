"""
Unit tests for target key encoding, classification and normalization.
"""

import pytest

from irc_channel.config import IrcConfig
from irc_channel.targets import (
    TargetAddress,
    TargetKind,
    classify,
    decode,
    encode,
    is_channel,
    is_dm,
    looks_like_target,
    normalize,
    resolve_target,
)


class TestEncodeDecode:
    def test_encode_lowercases_target_only(self):
        assert encode("Libera", "#General") == "irc:Libera:#general"

    @pytest.mark.parametrize(
        "account_id,target",
        [("default", "#general"), ("libera", "bob"), ("a-b", "#c:d")],
    )
    def test_decode_inverts_encode(self, account_id, target):
        assert decode(encode(account_id, target)) == TargetAddress(account_id, target)

    def test_encode_is_case_insensitive_on_target(self):
        assert encode("default", "Bob") == encode("default", "bob")

    @pytest.mark.parametrize("key", ["", "irc:", "irc:default", "irc::#x", "slack:a:b", "#general"])
    def test_decode_rejects_non_keys(self, key):
        assert decode(key) is None


class TestClassify:
    @pytest.mark.parametrize("raw", ["#general", "  #Dev  ", "#"])
    def test_channels(self, raw):
        assert classify(raw) is TargetKind.CHANNEL

    @pytest.mark.parametrize("raw", ["bob", "Alice_", "[away]", "`tick`", "_x9", "a-b|c^{}"])
    def test_nicks(self, raw):
        assert classify(raw) is TargetKind.DM

    @pytest.mark.parametrize("raw", ["not a target", "9lives", "", "bob!", "@op"])
    def test_unrecognized(self, raw):
        assert classify(raw) is TargetKind.UNRECOGNIZED


class TestNormalize:
    def test_channel_gets_default_account(self):
        assert normalize("#General") == "irc:default:#general"

    def test_nick_uses_given_account(self):
        assert normalize(" Bob ", "libera") == "irc:libera:bob"

    def test_prefixed_key_is_lowercased(self):
        assert normalize("IRC:Libera:#Dev") == "irc:libera:#dev"

    @pytest.mark.parametrize("raw", ["", "   ", "not a target", "#chan nel", "irc:a:b c", "9lives"])
    def test_rejects(self, raw):
        assert normalize(raw) is None


class TestResolveTarget:
    def setup_method(self):
        self.account = IrcConfig.from_dict({"server": {"host": "irc.libera.chat", "nick": "bot"}})

    def test_channel(self):
        target = resolve_target("#Dev", self.account)
        assert target.kind is TargetKind.CHANNEL
        assert target.target == "#dev"
        assert target.server == "irc.libera.chat"

    def test_nick_keeps_case(self):
        target = resolve_target("Bob", self.account)
        assert target.kind is TargetKind.DM
        assert target.target == "Bob"

    @pytest.mark.parametrize("raw,network,channel", [
        ("libera#Dev", "libera", "#dev"),
        ("9net:ops", "9net", "#ops"),
        ("oftc:#Help", "oftc", "#help"),
    ])
    def test_network_shorthand(self, raw, network, channel):
        target = resolve_target(raw, self.account)
        assert target.kind is TargetKind.CHANNEL
        assert target.network == network
        assert target.target == channel

    def test_unresolvable(self):
        assert resolve_target("   ", self.account) is None
        assert resolve_target("two words", self.account) is None


class TestHelpers:
    @pytest.mark.parametrize("raw,expected", [
        ("#chan", True),
        ("bob", True),
        ("bob!~u@host.example", True),
        ("irc:default:bob", True),
        ("IRC:x:y", True),
        ("averyveryverylongnick", False),
        ("", False),
    ])
    def test_looks_like_target(self, raw, expected):
        assert looks_like_target(raw) is expected

    def test_channel_and_dm_predicates(self):
        assert is_channel("#x") and not is_dm("#x")
        assert is_dm("bob") and not is_channel("bob")
        assert not is_dm("9lives")
