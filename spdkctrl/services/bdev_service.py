"""Bindings for the bdev_* methods."""

from __future__ import annotations

import logging

from spdkctrl.infra.rpc.client import SpdkClient
from spdkctrl.models.bdev import (
    Bdev,
    BdevAioCreateArgs,
    BdevAioDeleteArgs,
    BdevGetBdevsArgs,
    BdevMallocCreateArgs,
    BdevMallocDeleteArgs,
)
from spdkctrl.services._helpers import as_bool, as_str, list_of, params_of

logger = logging.getLogger(__name__)


class BdevService:
    """Block device listing, malloc and aio bdevs."""

    def __init__(self, client: SpdkClient) -> None:
        self._client = client

    async def get_bdevs(self, args: BdevGetBdevsArgs | None = None) -> list[Bdev]:
        return await self._client.invoke(
            "bdev_get_bdevs", params_of(args), decoder=list_of(Bdev.from_doc)
        )

    async def malloc_create(self, args: BdevMallocCreateArgs) -> str:
        """Create a RAM-backed bdev; returns its name."""
        name = await self._client.invoke(
            "bdev_malloc_create", params_of(args), decoder=as_str
        )
        logger.info("Created malloc bdev %s", name)
        return name

    async def malloc_delete(self, args: BdevMallocDeleteArgs) -> bool:
        return await self._client.invoke("bdev_malloc_delete", params_of(args), decoder=as_bool)

    async def aio_create(self, args: BdevAioCreateArgs) -> str:
        """Create a bdev backed by a file or block device; returns its name."""
        name = await self._client.invoke("bdev_aio_create", params_of(args), decoder=as_str)
        logger.info("Created aio bdev %s on %s", name, args.filename)
        return name

    async def aio_delete(self, args: BdevAioDeleteArgs) -> bool:
        return await self._client.invoke("bdev_aio_delete", params_of(args), decoder=as_bool)
