"""Config file management commands."""

from __future__ import annotations

import asyncio

import click
import tomlkit

from discord_rpc.cli.context import CliContext
from discord_rpc.config import ClientConfig


@click.group()
def config() -> None:
    """Create or inspect the config file."""


@config.command("init")
@click.option("--scope", "scopes", multiple=True, help="OAuth2 scope requested by login")
@click.option("--redirect-uri", default=None)
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_obj
def init_config(
    obj: CliContext,
    scopes: tuple[str, ...],
    redirect_uri: str | None,
    force: bool,
) -> None:
    """Write a config file with the given client id and defaults."""
    path = obj.config_path
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")

    settings = ClientConfig(
        client_id=obj.client_id,
        scopes=list(scopes),
        redirect_uri=redirect_uri,
        ipc_path=obj.ipc_path,
    )
    asyncio.run(settings.save(path))
    click.secho(f"Wrote {path}", fg="green")


@config.command("show")
@click.pass_obj
def show_config(obj: CliContext) -> None:
    """Print the effective configuration (secrets masked)."""
    settings = obj.load_config()
    data = settings.model_dump(mode="json")
    if data.get("client_secret"):
        data["client_secret"] = "********"
    click.echo(f"# {obj.config_path}")
    click.echo(tomlkit.dumps({key: value for key, value in data.items() if value is not None}))


__all__ = ["config"]
