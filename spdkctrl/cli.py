"""Click CLI definitions - main entry point."""

from __future__ import annotations

import logging
import sys

import click

from spdkctrl.commands.app_cmd import app_group
from spdkctrl.commands.bdev_cmd import bdev_group
from spdkctrl.commands.config_cmd import config_group
from spdkctrl.commands.lvol_cmd import lvol_group
from spdkctrl.commands.nbd_cmd import nbd_group
from spdkctrl.commands.vhost_cmd import vhost_group


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--socket", default=None, help="SPDK RPC socket (overrides config)")
@click.pass_context
def cli(ctx, debug: bool, socket: str | None) -> None:
    """spdkctrl - drive an SPDK application over its JSON-RPC socket."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["socket"] = socket


cli.add_command(app_group, "app")
cli.add_command(config_group, "config")
cli.add_command(bdev_group, "bdev")
cli.add_command(lvol_group, "lvol")
cli.add_command(nbd_group, "nbd")
cli.add_command(vhost_group, "vhost")


if __name__ == "__main__":
    cli()
