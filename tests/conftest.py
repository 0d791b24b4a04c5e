import os

import pytest

# Keep chunk pacing out of test wall-clock time unless a test asks for it
os.environ.setdefault("IRC_CHUNK_DELAY_SECONDS", "0")

from irc_channel.accounts import resolve_account  # noqa: E402
from irc_channel.config import IrcConfig  # noqa: E402
from tests.fixtures.fake_client import FakeClientFactory, FakeIrcClient  # noqa: E402
from tests.fixtures.sample_configs import (  # noqa: E402
    MULTI_ACCOUNT_CONFIG,
    SINGLE_ACCOUNT_CONFIG,
)


@pytest.fixture
def single_config() -> IrcConfig:
    return IrcConfig.from_dict(SINGLE_ACCOUNT_CONFIG)


@pytest.fixture
def multi_config() -> IrcConfig:
    return IrcConfig.from_dict(MULTI_ACCOUNT_CONFIG)


@pytest.fixture
def resolved_single(single_config):
    return resolve_account(single_config)


@pytest.fixture
def fake_client() -> FakeIrcClient:
    return FakeIrcClient(nick="clawbot")


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory(nick="clawbot")
