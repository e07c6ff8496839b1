"""CLI entry point for discord-rpc."""

from __future__ import annotations

from functools import partial
from pathlib import Path

import click

from discord_rpc import __version__
from discord_rpc.cli.commands.config import config
from discord_rpc.cli.commands.presence import presence
from discord_rpc.cli.commands.register import register
from discord_rpc.cli.commands.status import status
from discord_rpc.cli.context import CliContext
from discord_rpc.config import TRANSPORT_VALUES
from discord_rpc.debug_log import export_logs_to_file, setup_logging
from discord_rpc.limits import DEBUG_BUILD
from discord_rpc.paths import get_debug_log_path


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option(
    "--client-id",
    envvar="DISCORD_RPC_CLIENT_ID",
    default=None,
    help="Application (client) id; defaults to the config file value",
)
@click.option(
    "--config-file",
    type=click.Path(dir_okay=False, path_type=str),
    default=None,
    help="Config file to use instead of the default location",
)
@click.option(
    "--ipc-path",
    default=None,
    help="Connect to this socket/pipe (or ws:// URL) instead of probing",
)
@click.option(
    "--transport",
    type=click.Choice(sorted(TRANSPORT_VALUES)),
    default=None,
    help="Transport to use instead of the configured one",
)
@click.option("-v", "--verbose", is_flag=True, help="Log wire traffic to stderr")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the debug log buffer to this file on exit",
)
@click.option(
    "--save-log",
    is_flag=True,
    help="Write the debug log buffer to debug.log in the data directory on exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    client_id: str | None,
    config_file: str | None,
    ipc_path: str | None,
    transport: str | None,
    verbose: bool,
    log_file: Path | None,
    save_log: bool,
) -> None:
    """Talk to the Discord desktop application over local RPC."""
    if version:
        click.echo(f"discord-rpc {__version__}")
        ctx.exit(0)

    setup_logging(verbose or DEBUG_BUILD)
    log_target = log_file or (get_debug_log_path() if save_log else None)
    if log_target is not None:
        # Runs on failure too, which is when the log is wanted.
        ctx.call_on_close(partial(_export_debug_log, log_target))
    ctx.obj = CliContext(
        client_id=client_id,
        config_file=config_file,
        ipc_path=ipc_path,
        transport=transport,
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _export_debug_log(path: Path) -> None:
    count = export_logs_to_file(path)
    click.echo(f"Wrote {count} log entries to {path}", err=True)


cli.add_command(status)
cli.add_command(presence)
cli.add_command(register)
cli.add_command(config)


def main() -> None:
    cli(prog_name="discord-rpc")


if __name__ == "__main__":
    main()
