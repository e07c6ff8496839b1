"""URL scheme registration command."""

from __future__ import annotations

import click

from discord_rpc.register import register as register_scheme


@click.command()
@click.argument("client_id")
@click.option(
    "--command",
    "launch_command",
    default=None,
    help="Command the scheme should launch (defaults to the running program)",
)
def register(client_id: str, launch_command: str | None) -> None:
    """Register the discord-CLIENT_ID:// scheme so join requests can launch the app."""
    try:
        scheme = register_scheme(client_id, command=launch_command)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="CLIENT_ID") from exc
    except OSError as exc:
        raise click.ClickException(f"Registration failed: {exc}") from exc
    click.secho(f"Registered {scheme}://", fg="green")


__all__ = ["register"]
