"""Path helpers: config location and IPC endpoint candidates."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from discord_rpc.constants import IPC_BASENAME, RPC_VERSION, RPC_WS_HOST, WINDOWS_PIPE_PREFIX
from discord_rpc.limits import MAX_IPC_SLOTS, MAX_WS_PORTS, RPC_WS_PORT

_APP_NAME = "discord-rpc"

# Sandboxed desktop clients place the socket one level below the runtime dir.
_SANDBOX_SUBDIRS = ("", "app/com.discordapp.Discord", "snap.discord")


def get_config_dir() -> Path:
    """Get the config directory (config.toml)."""
    override = os.environ.get("DISCORD_RPC_CONFIG_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_config_dir(_APP_NAME))


def get_config_path() -> Path:
    """Get the path to the main config file."""
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory (exported debug logs)."""
    override = os.environ.get("DISCORD_RPC_DATA_DIR")
    if override:
        return Path(override).resolve()
    return Path(user_data_dir(_APP_NAME))


def get_debug_log_path() -> Path:
    """Get the path to the debug log export file."""
    return get_data_dir() / "debug.log"


def get_ipc_runtime_dir() -> Path:
    """Return the directory the host application creates its IPC sockets in."""
    for var in ("XDG_RUNTIME_DIR", "TMPDIR", "TMP", "TEMP"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return Path("/tmp")


def ipc_path_candidates(*, platform: str | None = None) -> list[str]:
    """List IPC endpoint addresses in the order they should be tried.

    On Windows these are named pipes ``\\\\?\\pipe\\discord-ipc-N``; elsewhere
    they are Unix socket paths under the runtime directory, including the
    Flatpak and Snap sandbox locations.
    """
    target = platform or sys.platform
    if target == "win32":
        return [f"{WINDOWS_PIPE_PREFIX}\\{IPC_BASENAME}-{slot}" for slot in range(MAX_IPC_SLOTS)]

    base = get_ipc_runtime_dir()
    candidates: list[str] = []
    for subdir in _SANDBOX_SUBDIRS:
        root = base / subdir if subdir else base
        candidates.extend(str(root / f"{IPC_BASENAME}-{slot}") for slot in range(MAX_IPC_SLOTS))
    return candidates


def websocket_url_candidates(client_id: str) -> list[str]:
    """Local RPC websocket URLs, one per port the host may listen on."""
    query = f"v={RPC_VERSION}&client_id={client_id}&encoding=json"
    return [
        f"ws://{RPC_WS_HOST}:{port}/?{query}"
        for port in range(RPC_WS_PORT, RPC_WS_PORT + MAX_WS_PORTS)
    ]


__all__ = [
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_debug_log_path",
    "get_ipc_runtime_dir",
    "ipc_path_candidates",
    "websocket_url_candidates",
]
