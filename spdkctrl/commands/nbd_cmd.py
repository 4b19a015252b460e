"""CLI handlers for nbd commands."""

from __future__ import annotations

import click

from spdkctrl.commands._helpers import run_rpc
from spdkctrl.models.nbd import NbdGetDisksArgs, NbdStartDiskArgs, NbdStopDiskArgs


@click.group("nbd")
def nbd_group():
    """Export bdevs as Linux network block devices."""
    pass


@nbd_group.command("start")
@click.argument("bdev_name")
@click.argument("nbd_device")
def nbd_start(bdev_name: str, nbd_device: str):
    """Export BDEV_NAME on NBD_DEVICE (e.g. /dev/nbd0)."""
    args = NbdStartDiskArgs(bdev_name=bdev_name, nbd_device=nbd_device)
    run_rpc(lambda ctx: ctx.nbd_service.start_disk(args))


@nbd_group.command("list")
@click.option("--device", "nbd_device", default="", help="Only this nbd device")
def nbd_list(nbd_device: str):
    """List exported nbd devices."""
    run_rpc(lambda ctx: ctx.nbd_service.get_disks(NbdGetDisksArgs(nbd_device=nbd_device)))


@nbd_group.command("stop")
@click.argument("nbd_device")
def nbd_stop(nbd_device: str):
    """Stop exporting NBD_DEVICE."""
    run_rpc(lambda ctx: ctx.nbd_service.stop_disk(NbdStopDiskArgs(nbd_device=nbd_device)))
