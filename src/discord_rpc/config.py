"""Configuration loader for the RPC client."""

from __future__ import annotations

import asyncio
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Literal

import tomlkit
from pydantic import BaseModel, Field, field_validator

from discord_rpc.constants import API_BASE_URL
from discord_rpc.limits import ACTIVITY_INTERVAL, HANDSHAKE_TIMEOUT, REQUEST_TIMEOUT
from discord_rpc.paths import get_config_path
from discord_rpc.ratelimit import RateLimitPolicy

type TransportPreference = Literal["auto", "socket", "pipe", "websocket"]

TRANSPORT_VALUES = frozenset({"auto", "socket", "pipe", "websocket"})

_ENV_OVERRIDES = {
    "DISCORD_RPC_CLIENT_ID": "client_id",
    "DISCORD_RPC_CLIENT_SECRET": "client_secret",
}


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically to avoid partial/corrupt writes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    except Exception:
        Path(tmp_path).unlink(missing_ok=True)
        raise


class ClientConfig(BaseModel):
    """Settings for one RPC client."""

    client_id: str | None = Field(default=None, description="Application (client) id")
    client_secret: str | None = Field(
        default=None,
        description="OAuth2 client secret, only needed for login without a token endpoint",
    )
    redirect_uri: str | None = Field(default=None, description="OAuth2 redirect URI")
    scopes: list[str] = Field(
        default_factory=list,
        description="OAuth2 scopes requested by login (empty = presence only)",
    )
    token_endpoint: str | None = Field(
        default=None,
        description="Backend URL that exchanges AUTHORIZE codes for tokens",
    )
    api_base: str = Field(default=API_BASE_URL, description="Discord HTTP API base URL")
    transport: TransportPreference = Field(
        default="auto",
        description="Transport preference: auto|socket|pipe|websocket",
    )
    ipc_path: str | None = Field(
        default=None,
        description=(
            "Explicit socket/pipe path (or websocket URL) instead of probing"
            " discord-ipc-0..9 or ports 6463..6472"
        ),
    )
    origin: str | None = Field(
        default=None,
        description="Origin header for the websocket transport (must be an app RPC origin)",
    )
    handshake_timeout: float = Field(default=HANDSHAKE_TIMEOUT, gt=0)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    activity_interval: float = Field(default=ACTIVITY_INTERVAL, ge=0)
    rate_limit_policy: RateLimitPolicy = Field(
        default=RateLimitPolicy.COALESCE,
        description="What to do with activity updates inside the interval: coalesce|reject",
    )
    leading_edge: bool = Field(
        default=False,
        description="Send the first activity update of an idle window immediately",
    )

    @field_validator("transport", mode="before")
    @classmethod
    def validate_transport(cls, value: object) -> str:
        """Coerce invalid transport values to 'auto'; 'ipc' means the platform default."""
        match value:
            case "ipc":
                return "auto"
            case str() as transport if transport in TRANSPORT_VALUES:
                return transport
            case _:
                pass
        return "auto"

    @classmethod
    def load(cls, config_path: Path | None = None) -> ClientConfig:
        """Load configuration from TOML file or use defaults, then apply env overrides."""
        if config_path is None:
            config_path = get_config_path()

        data: dict[str, object] = {}
        if config_path.exists():
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
            data = dict(raw.get("client", raw))

        for env_var, key in _ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                data[key] = value
        return cls.model_validate(data)

    async def save(self, path: Path) -> None:
        """Serialize current config to TOML file.

        Secrets are never written; keep them in the environment.
        """
        doc = tomlkit.document()
        client_table = tomlkit.table()
        for key, value in self.model_dump(mode="json", exclude={"client_secret"}).items():
            if value is not None and value != []:
                client_table[key] = value
        doc["client"] = client_table

        content = tomlkit.dumps(doc)
        await asyncio.to_thread(atomic_write, path, content)


__all__ = ["TRANSPORT_VALUES", "ClientConfig", "atomic_write"]
