"""Bindings for the nbd_* methods."""

from __future__ import annotations

from spdkctrl.infra.rpc.client import SpdkClient
from spdkctrl.models.nbd import NbdDisk, NbdGetDisksArgs, NbdStartDiskArgs, NbdStopDiskArgs
from spdkctrl.services._helpers import as_bool, as_str, list_of, params_of


class NbdService:
    def __init__(self, client: SpdkClient) -> None:
        self._client = client

    async def start_disk(self, args: NbdStartDiskArgs) -> str:
        """Export a bdev as an nbd device; returns the device path."""
        return await self._client.invoke("nbd_start_disk", params_of(args), decoder=as_str)

    async def get_disks(self, args: NbdGetDisksArgs | None = None) -> list[NbdDisk]:
        return await self._client.invoke(
            "nbd_get_disks", params_of(args), decoder=list_of(NbdDisk.from_doc)
        )

    async def stop_disk(self, args: NbdStopDiskArgs) -> bool:
        return await self._client.invoke("nbd_stop_disk", params_of(args), decoder=as_bool)
