"""Connectivity check against the running host application."""

from __future__ import annotations

from typing import Any

import click

from discord_rpc.cli.context import CliContext, run_async
from discord_rpc.client import Client
from discord_rpc.config import ClientConfig


async def _probe(config: ClientConfig) -> dict[str, Any]:
    async with Client(config=config) as client:
        return {
            "address": client.address,
            "user": client.user or {},
            "config": client.host_config or {},
        }


@click.command()
@click.pass_obj
def status(obj: CliContext) -> None:
    """Connect, complete the handshake and show who is logged in."""
    config = obj.load_config()
    obj.require_client_id(config)
    info = run_async(_probe(config))

    user = info["user"]
    click.secho("Connected.", fg="green", bold=True)
    click.echo(f"  Address:   {info['address']}")
    click.echo(f"  User:      {user.get('username', '?')} ({user.get('id', '?')})")
    api = info["config"].get("api_endpoint")
    if api:
        click.echo(f"  API:       {api}")
    environment = info["config"].get("environment")
    if environment:
        click.echo(f"  Env:       {environment}")


__all__ = ["status"]
