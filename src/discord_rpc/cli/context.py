"""State shared by CLI commands through ``click.Context.obj``."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from discord_rpc.config import ClientConfig
from discord_rpc.errors import DiscordRPCError
from discord_rpc.paths import get_config_path

if TYPE_CHECKING:
    from collections.abc import Coroutine


@dataclass(slots=True)
class CliContext:
    client_id: str | None = None
    config_file: str | None = None
    ipc_path: str | None = None
    transport: str | None = None

    @property
    def config_path(self) -> Path:
        return Path(self.config_file) if self.config_file else get_config_path()

    def load_config(self, **overrides: Any) -> ClientConfig:
        """Config file values, then environment, then command-line options."""
        config = ClientConfig.load(self.config_path)
        updates = dict(overrides)
        if self.client_id:
            updates["client_id"] = self.client_id
        if self.ipc_path:
            updates["ipc_path"] = self.ipc_path
        if self.transport:
            updates["transport"] = self.transport
        return config.model_copy(update=updates) if updates else config

    def require_client_id(self, config: ClientConfig) -> str:
        if not config.client_id:
            msg = "No client id: pass --client-id, set DISCORD_RPC_CLIENT_ID or run `config init`"
            raise click.UsageError(msg)
        return config.client_id


def run_async[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro*, turning library errors into a clean CLI failure."""
    try:
        return asyncio.run(coro)
    except DiscordRPCError as exc:
        raise click.ClickException(str(exc)) from exc


__all__ = ["CliContext", "run_async"]
