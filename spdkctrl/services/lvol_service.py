"""Bindings for the bdev_lvol_* methods."""

from __future__ import annotations

import logging

from spdkctrl.infra.rpc.client import SpdkClient
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
    Lvstore,
)
from spdkctrl.services._helpers import as_bool, as_str, list_of, params_of

logger = logging.getLogger(__name__)


class LvolService:
    """Logical volume stores and logical volumes.

    Arguments that SPDK accepts as "exactly one of uuid or lvs_name" are
    checked here, before anything is sent; a ValidationError means the
    request never reached the wire.
    """

    def __init__(self, client: SpdkClient) -> None:
        self._client = client

    async def create_lvstore(self, args: BdevLvolCreateLvstoreArgs) -> str:
        """Create an lvstore on a bdev; returns the lvstore UUID."""
        args.validate()
        uuid = await self._client.invoke(
            "bdev_lvol_create_lvstore", params_of(args), decoder=as_str
        )
        logger.info("Created lvstore %s (%s) on %s", args.lvs_name, uuid, args.bdev_name)
        return uuid

    async def delete_lvstore(self, args: BdevLvolDeleteLvstoreArgs) -> bool:
        args.validate()
        return await self._client.invoke(
            "bdev_lvol_delete_lvstore", params_of(args), decoder=as_bool
        )

    async def get_lvstores(self, args: BdevLvolGetLvstoresArgs | None = None) -> list[Lvstore]:
        if args is not None:
            args.validate()
        return await self._client.invoke(
            "bdev_lvol_get_lvstores", params_of(args), decoder=list_of(Lvstore.from_doc)
        )

    async def create(self, args: BdevLvolCreateArgs) -> str:
        """Create an lvol; returns its UUID."""
        args.validate()
        uuid = await self._client.invoke("bdev_lvol_create", params_of(args), decoder=as_str)
        logger.info("Created lvol %s (%s)", args.lvol_name, uuid)
        return uuid

    async def delete(self, args: BdevLvolDeleteArgs) -> bool:
        return await self._client.invoke("bdev_lvol_delete", params_of(args), decoder=as_bool)

    async def snapshot(self, args: BdevLvolSnapshotArgs) -> str:
        """Snapshot an lvol; returns the snapshot UUID."""
        return await self._client.invoke("bdev_lvol_snapshot", params_of(args), decoder=as_str)

    async def clone(self, args: BdevLvolCloneArgs) -> str:
        """Clone a snapshot; returns the clone UUID."""
        return await self._client.invoke("bdev_lvol_clone", params_of(args), decoder=as_str)

    async def set_read_only(self, args: BdevLvolSetReadOnlyArgs) -> bool:
        return await self._client.invoke(
            "bdev_lvol_set_read_only", params_of(args), decoder=as_bool
        )

    async def decouple_parent(self, args: BdevLvolDecoupleParentArgs) -> bool:
        return await self._client.invoke(
            "bdev_lvol_decouple_parent", params_of(args), decoder=as_bool
        )
