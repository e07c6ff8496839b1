"""Set or clear rich presence from the command line."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import click

from discord_rpc.activity import Activity, build_activity
from discord_rpc.cli.context import CliContext, run_async
from discord_rpc.client import Client
from discord_rpc.config import ClientConfig
from discord_rpc.constants import ActivityType
from discord_rpc.errors import ActivityValidationError

_ACTIVITY_TYPES = [member.name.lower() for member in ActivityType]


@click.group()
def presence() -> None:
    """Manage the rich presence shown for the application."""


def _build(
    *,
    name: str,
    details: str | None,
    state: str | None,
    activity_type: str,
    large_image: str | None,
    large_text: str | None,
    small_image: str | None,
    small_text: str | None,
    start_now: bool,
    party_size: int | None,
    party_max: int | None,
    buttons: tuple[tuple[str, str], ...],
) -> Activity:
    fields: dict[str, Any] = {
        "name": name,
        "type": ActivityType[activity_type.upper()],
        "details": details,
        "state": state,
        "large_image_key": large_image,
        "large_image_text": large_text,
        "small_image_key": small_image,
        "small_image_text": small_text,
        "party_size": party_size,
        "party_max": party_max,
    }
    if start_now:
        fields["start_timestamp"] = int(time.time() * 1000)
    if buttons:
        fields["buttons"] = [{"label": label, "url": url} for label, url in buttons]
    return build_activity({key: value for key, value in fields.items() if value is not None})


async def _publish(config: ClientConfig, activity: Activity | None, hold: float) -> Any:
    async with Client(config=config) as client:
        if activity is None:
            result = await client.clear_activity()
        else:
            result = await client.set_activity(activity)
        if hold > 0:
            await asyncio.sleep(hold)
        return result


@presence.command("set")
@click.option("--name", required=True, help="Activity name")
@click.option("--details", default=None, help="First line under the name")
@click.option("--state", default=None, help="Second line under the name")
@click.option(
    "--type",
    "activity_type",
    type=click.Choice(_ACTIVITY_TYPES, case_sensitive=False),
    default="playing",
    show_default=True,
)
@click.option("--large-image", default=None, help="Large asset key or URL")
@click.option("--large-text", default=None, help="Large asset tooltip")
@click.option("--small-image", default=None, help="Small asset key or URL")
@click.option("--small-text", default=None, help="Small asset tooltip")
@click.option("--start-now", is_flag=True, help="Show elapsed time from now")
@click.option("--party-size", type=int, default=None)
@click.option("--party-max", type=int, default=None)
@click.option(
    "--button",
    "buttons",
    type=(str, str),
    multiple=True,
    metavar="LABEL URL",
    help="Link button (repeatable, at most two)",
)
@click.option(
    "--hold",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Keep the connection (and presence) open for this many seconds",
)
@click.pass_obj
def set_presence(obj: CliContext, hold: float, **fields: Any) -> None:
    """Publish a rich presence activity."""
    try:
        activity = _build(**fields)
    except ActivityValidationError as exc:
        raise click.BadParameter(str(exc)) from exc

    config = obj.load_config(leading_edge=True)
    obj.require_client_id(config)
    run_async(_publish(config, activity, hold))
    click.secho(f"Presence set: {activity.name}", fg="green")


@presence.command("clear")
@click.pass_obj
def clear_presence(obj: CliContext) -> None:
    """Remove the current rich presence."""
    config = obj.load_config(leading_edge=True)
    obj.require_client_id(config)
    run_async(_publish(config, None, 0.0))
    click.secho("Presence cleared.", fg="green")


__all__ = ["presence"]
