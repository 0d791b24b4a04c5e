import json
import os

import pytest

from irc_channel.config import ConfigRepository, extract_irc_block, load_irc_config
from irc_channel.errors import ConfigurationError
from tests.fixtures.sample_configs import PLATFORM_DOCUMENT, SINGLE_ACCOUNT_CONFIG


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")


class TestExtractIrcBlock:
    def test_platform_document(self):
        assert extract_irc_block(PLATFORM_DOCUMENT) == SINGLE_ACCOUNT_CONFIG

    def test_irc_key(self):
        assert extract_irc_block({"irc": SINGLE_ACCOUNT_CONFIG}) == SINGLE_ACCOUNT_CONFIG

    def test_bare_block(self):
        assert extract_irc_block(SINGLE_ACCOUNT_CONFIG) is SINGLE_ACCOUNT_CONFIG

    @pytest.mark.parametrize("data", [[], None, {"channels": {"slack": {}}}, {"other": 1}])
    def test_no_irc_block(self, data):
        assert extract_irc_block(data) is None


class TestConfigRepository:
    def test_load_platform_document(self, tmp_path):
        path = tmp_path / "config.json"
        _write(path, PLATFORM_DOCUMENT)
        cfg = ConfigRepository(path).load()
        assert cfg.server.host == "irc.libera.chat"

    def test_missing_file(self, tmp_path):
        assert ConfigRepository(tmp_path / "nope.json").load() is None

    def test_file_without_irc_block(self, tmp_path):
        path = tmp_path / "config.json"
        _write(path, {"channels": {}})
        assert load_irc_config(path) is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigRepository(path).load()
        assert exc_info.value.data == {"path": str(path)}

    def test_validation_error(self, tmp_path):
        path = tmp_path / "config.json"
        _write(path, {"server": {"host": "", "nick": "n"}})
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigRepository(path).load()
        assert "Invalid IRC configuration" in str(exc_info.value)

    def test_cache_reused_until_file_changes(self, tmp_path):
        path = tmp_path / "config.json"
        _write(path, SINGLE_ACCOUNT_CONFIG)
        repo = ConfigRepository(path)
        first = repo.load_raw()
        assert repo.load_raw() is first

        _write(path, {"server": {"host": "irc.oftc.net", "nick": "clawbot2"}})
        st = os.stat(path)
        os.utime(path, (st.st_atime, st.st_mtime + 5))
        assert repo.load_raw()["server"]["host"] == "irc.oftc.net"

    def test_rejects_non_path(self):
        with pytest.raises(TypeError):
            ConfigRepository(123)
