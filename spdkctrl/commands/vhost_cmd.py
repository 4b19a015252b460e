"""CLI handlers for vhost commands."""

from __future__ import annotations

import click

from spdkctrl.commands._helpers import run_rpc
from spdkctrl.models.vhost import (
    VhostCreateBlkControllerArgs,
    VhostDeleteControllerArgs,
    VhostGetControllersArgs,
)


@click.group("vhost")
def vhost_group():
    """Manage vhost controllers."""
    pass


@vhost_group.command("create-blk")
@click.argument("ctrlr")
@click.argument("dev_name")
@click.option("--readonly", is_flag=True, help="Expose the device read-only")
@click.option("--cpumask", default="", help="CPU mask for the controller")
def vhost_create_blk(ctrlr: str, dev_name: str, readonly: bool, cpumask: str):
    """Create a vhost-blk controller CTRLR serving bdev DEV_NAME."""
    args = VhostCreateBlkControllerArgs(
        ctrlr=ctrlr, dev_name=dev_name, readonly=readonly, cpumask=cpumask
    )
    run_rpc(lambda ctx: ctx.vhost_service.create_blk_controller(args))


@vhost_group.command("delete")
@click.argument("ctrlr")
def vhost_delete(ctrlr: str):
    """Delete a vhost controller."""
    run_rpc(lambda ctx: ctx.vhost_service.delete_controller(VhostDeleteControllerArgs(ctrlr=ctrlr)))


@vhost_group.command("list")
@click.option("--name", "-n", default="", help="Only this controller")
def vhost_list(name: str):
    """List vhost controllers."""
    run_rpc(lambda ctx: ctx.vhost_service.get_controllers(VhostGetControllersArgs(name=name)))
