"""Bindings for the vhost_* methods."""

from __future__ import annotations

from typing import Any

from spdkctrl.infra.rpc.client import SpdkClient
from spdkctrl.models.vhost import (
    Controller,
    VhostCreateBlkControllerArgs,
    VhostDeleteControllerArgs,
    VhostGetControllersArgs,
)
from spdkctrl.services._helpers import as_bool, list_of, params_of

_decode_controllers = list_of(Controller.from_doc)


def _decode_and_parse(result: Any) -> list[Controller]:
    return [controller.with_parsed_backends() for controller in _decode_controllers(result)]


class VhostService:
    def __init__(self, client: SpdkClient) -> None:
        self._client = client

    async def create_blk_controller(self, args: VhostCreateBlkControllerArgs) -> bool:
        return await self._client.invoke(
            "vhost_create_blk_controller", params_of(args), decoder=as_bool
        )

    async def delete_controller(self, args: VhostDeleteControllerArgs) -> bool:
        return await self._client.invoke(
            "vhost_delete_controller", params_of(args), decoder=as_bool
        )

    async def get_controllers(
        self, args: VhostGetControllersArgs | None = None
    ) -> list[Controller]:
        """List controllers with their backend_specific entries typed.

        ``block`` becomes a BlockBackend, ``scsi`` a list of ScsiBackend and
        ``namespaces`` a list of NvmeBackend; other backends stay raw.
        """
        return await self._client.invoke(
            "vhost_get_controllers", params_of(args), decoder=_decode_and_parse
        )
