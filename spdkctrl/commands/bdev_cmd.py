"""CLI handlers for bdev commands."""

from __future__ import annotations

import click

from spdkctrl.commands._helpers import run_rpc
from spdkctrl.models.bdev import (
    BdevAioCreateArgs,
    BdevAioDeleteArgs,
    BdevGetBdevsArgs,
    BdevMallocCreateArgs,
    BdevMallocDeleteArgs,
)


@click.group("bdev")
def bdev_group():
    """Manage block devices."""
    pass


@bdev_group.command("list")
@click.option("--name", "-n", default="", help="Only this bdev")
def bdev_list(name: str):
    """List bdevs."""
    run_rpc(lambda ctx: ctx.bdev_service.get_bdevs(BdevGetBdevsArgs(name=name)))


@bdev_group.command("malloc-create")
@click.option("--num-blocks", type=int, required=True, help="Number of blocks")
@click.option("--block-size", type=int, default=512, show_default=True, help="Block size in bytes")
@click.option("--name", "-n", default="", help="Bdev name (generated when omitted)")
@click.option("--uuid", default="", help="Bdev UUID (generated when omitted)")
def bdev_malloc_create(num_blocks: int, block_size: int, name: str, uuid: str):
    """Create a RAM-backed bdev."""
    args = BdevMallocCreateArgs(block_size=block_size, num_blocks=num_blocks, name=name, uuid=uuid)
    run_rpc(lambda ctx: ctx.bdev_service.malloc_create(args))


@bdev_group.command("malloc-delete")
@click.argument("name")
def bdev_malloc_delete(name: str):
    """Delete a malloc bdev."""
    run_rpc(lambda ctx: ctx.bdev_service.malloc_delete(BdevMallocDeleteArgs(name=name)))


@bdev_group.command("aio-create")
@click.argument("name")
@click.argument("filename")
@click.option("--block-size", type=int, default=0, help="Block size in bytes (auto-detected when 0)")
def bdev_aio_create(name: str, filename: str, block_size: int):
    """Create a bdev on top of FILENAME using Linux AIO."""
    args = BdevAioCreateArgs(name=name, filename=filename, block_size=block_size)
    run_rpc(lambda ctx: ctx.bdev_service.aio_create(args))


@bdev_group.command("aio-delete")
@click.argument("name")
def bdev_aio_delete(name: str):
    """Delete an aio bdev."""
    run_rpc(lambda ctx: ctx.bdev_service.aio_delete(BdevAioDeleteArgs(name=name)))
