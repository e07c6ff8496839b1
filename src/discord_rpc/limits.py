"""Numeric limits and timeouts - no circular dependencies."""

from __future__ import annotations

import os


def _is_debug_build() -> bool:
    """Check if verbose wire logging should be on by default.

    Enabled when the ``DISCORD_RPC_DEBUG`` env var is ``1``/``true`` or the
    installed package version is a pre-release (``dev``, ``a``, ``b``, ``rc``).
    """
    env_debug = os.environ.get("DISCORD_RPC_DEBUG", "").lower()
    if env_debug in ("1", "true"):
        return True
    if env_debug in ("0", "false"):
        return False

    try:
        from importlib.metadata import version

        pkg_version = version("discord-rpc-client")
    except Exception:
        pkg_version = "dev"

    version_lower = pkg_version.lower()
    return any(indicator in version_lower for indicator in ("dev", "a", "b", "rc"))


DEBUG_BUILD: bool = _is_debug_build()
"""True for pre-release builds, False for production releases."""


HANDSHAKE_TIMEOUT = 5.0
REQUEST_TIMEOUT = 10.0
SHUTDOWN_TIMEOUT = 5.0
ACTIVITY_INTERVAL = 15.0


READ_CHUNK_SIZE = 64 * 1024
MAX_FRAME_BYTES = 64 * 1024 * 1024  # 64 MiB payload ceiling per frame
MAX_IPC_SLOTS = 10  # discord-ipc-0 .. discord-ipc-9
RPC_WS_PORT = 6463
MAX_WS_PORTS = 10  # 6463 .. 6472


MAX_ACTIVITY_BUTTONS = 2
MAX_BUTTON_LABEL_LENGTH = 32
MAX_BUTTON_URL_LENGTH = 512
MAX_ACTIVITY_TEXT_LENGTH = 128
MAX_ASSET_KEY_LENGTH = 256
MAX_LOG_MESSAGE_LENGTH = 4096
