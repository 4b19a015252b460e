"""CLI handlers for logical volume commands."""

from __future__ import annotations

import click

from spdkctrl.commands._helpers import run_rpc
from spdkctrl.models.lvol import (
    BdevLvolCloneArgs,
    BdevLvolCreateArgs,
    BdevLvolCreateLvstoreArgs,
    BdevLvolDecoupleParentArgs,
    BdevLvolDeleteArgs,
    BdevLvolDeleteLvstoreArgs,
    BdevLvolGetLvstoresArgs,
    BdevLvolSetReadOnlyArgs,
    BdevLvolSnapshotArgs,
    ClearMethod,
)

_CLEAR_METHODS = click.Choice([m.value for m in ClearMethod], case_sensitive=False)


@click.group("lvol")
def lvol_group():
    """Manage lvol stores and logical volumes."""
    pass


@lvol_group.command("lvstore-create")
@click.argument("bdev_name")
@click.argument("lvs_name")
@click.option("--cluster-sz", type=int, default=0, help="Cluster size in bytes")
@click.option("--clear-method", type=_CLEAR_METHODS, default=None, help="How to clear the data region")
def lvstore_create(bdev_name: str, lvs_name: str, cluster_sz: int, clear_method: str | None):
    """Create an lvol store on BDEV_NAME."""
    args = BdevLvolCreateLvstoreArgs(
        bdev_name=bdev_name, lvs_name=lvs_name,
        cluster_sz=cluster_sz, clear_method=clear_method or "",
    )
    run_rpc(lambda ctx: ctx.lvol_service.create_lvstore(args))


@lvol_group.command("lvstore-delete")
@click.option("--uuid", "-u", default="", help="Lvol store UUID")
@click.option("--lvs-name", "-l", default="", help="Lvol store name")
def lvstore_delete(uuid: str, lvs_name: str):
    """Delete an lvol store, selected by UUID or name."""
    args = BdevLvolDeleteLvstoreArgs(uuid=uuid, lvs_name=lvs_name)
    run_rpc(lambda ctx: ctx.lvol_service.delete_lvstore(args))


@lvol_group.command("lvstores")
@click.option("--uuid", "-u", default="", help="Only this lvol store UUID")
@click.option("--lvs-name", "-l", default="", help="Only this lvol store name")
def lvstore_list(uuid: str, lvs_name: str):
    """List lvol stores."""
    args = BdevLvolGetLvstoresArgs(uuid=uuid, lvs_name=lvs_name)
    run_rpc(lambda ctx: ctx.lvol_service.get_lvstores(args))


@lvol_group.command("create")
@click.argument("lvol_name")
@click.argument("size_in_mib", type=int)
@click.option("--uuid", "-u", default="", help="Lvol store UUID")
@click.option("--lvs-name", "-l", default="", help="Lvol store name")
@click.option("--thin", "thin_provision", is_flag=True, help="Thin provision the volume")
@click.option("--clear-method", type=_CLEAR_METHODS, default=None, help="How to clear the volume")
def lvol_create(
    lvol_name: str, size_in_mib: int, uuid: str, lvs_name: str,
    thin_provision: bool, clear_method: str | None,
):
    """Create a logical volume of SIZE_IN_MIB mebibytes."""
    args = BdevLvolCreateArgs(
        lvol_name=lvol_name, size_in_mib=size_in_mib, uuid=uuid, lvs_name=lvs_name,
        thin_provision=thin_provision, clear_method=clear_method or "",
    )
    run_rpc(lambda ctx: ctx.lvol_service.create(args))


@lvol_group.command("delete")
@click.argument("name")
def lvol_delete(name: str):
    """Delete a logical volume."""
    run_rpc(lambda ctx: ctx.lvol_service.delete(BdevLvolDeleteArgs(name=name)))


@lvol_group.command("snapshot")
@click.argument("lvol_name")
@click.argument("snapshot_name")
def lvol_snapshot(lvol_name: str, snapshot_name: str):
    """Snapshot a logical volume."""
    args = BdevLvolSnapshotArgs(lvol_name=lvol_name, snapshot_name=snapshot_name)
    run_rpc(lambda ctx: ctx.lvol_service.snapshot(args))


@lvol_group.command("clone")
@click.argument("snapshot_name")
@click.argument("clone_name")
def lvol_clone(snapshot_name: str, clone_name: str):
    """Clone a snapshot."""
    args = BdevLvolCloneArgs(snapshot_name=snapshot_name, clone_name=clone_name)
    run_rpc(lambda ctx: ctx.lvol_service.clone(args))


@lvol_group.command("set-read-only")
@click.argument("name")
def lvol_set_read_only(name: str):
    """Mark a logical volume read-only."""
    run_rpc(lambda ctx: ctx.lvol_service.set_read_only(BdevLvolSetReadOnlyArgs(name=name)))


@lvol_group.command("decouple-parent")
@click.argument("name")
def lvol_decouple_parent(name: str):
    """Copy the parent's clusters into a thin clone and drop the link."""
    run_rpc(lambda ctx: ctx.lvol_service.decouple_parent(BdevLvolDecoupleParentArgs(name=name)))
