"""Pytest fixtures for discord-rpc tests."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from discord_rpc.client import Client
from discord_rpc.config import ClientConfig
from tests.helpers.fake_host import CLIENT_ID, FakeHostTransport, counter_nonces

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="discord-rpc-tests-"))
os.environ["DISCORD_RPC_DATA_DIR"] = str(_TEST_BASE_DIR / "data")
os.environ["DISCORD_RPC_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")
os.environ.pop("DISCORD_RPC_CLIENT_ID", None)
os.environ.pop("DISCORD_RPC_CLIENT_SECRET", None)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def host() -> FakeHostTransport:
    """Scripted in-memory host application."""
    return FakeHostTransport()


@pytest.fixture
def client_config() -> ClientConfig:
    """Config with short timers so window and timeout tests stay fast."""
    return ClientConfig(
        client_id=CLIENT_ID,
        handshake_timeout=1.0,
        request_timeout=1.0,
        activity_interval=0.2,
    )


@pytest.fixture
async def client(
    host: FakeHostTransport,
    client_config: ClientConfig,
) -> AsyncGenerator[Client, None]:
    """Client wired to the fake host, not yet connected."""
    rpc = Client(config=client_config, transport=host, nonce_factory=counter_nonces())
    yield rpc
    await rpc.destroy()


@pytest.fixture
async def connected(client: Client) -> Client:
    await client.connect()
    return client


@pytest.fixture
def short_tmp() -> Generator[Path, None, None]:
    """Create a short temp directory for Unix socket paths (macOS 104-byte limit)."""
    d = tempfile.mkdtemp(prefix="d-", dir="/tmp")
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_config_dir() -> Generator[None, None, None]:
    """Ensure config files written by one test don't leak into the next."""
    yield
    shutil.rmtree(Path(os.environ["DISCORD_RPC_CONFIG_DIR"]), ignore_errors=True)
