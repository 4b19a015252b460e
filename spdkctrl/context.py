"""EngineContext: one client connection plus the method bindings on top of it."""

from __future__ import annotations

import logging
from typing import IO

from spdkctrl.infra.rpc.client import SpdkClient
from spdkctrl.services.bdev_service import BdevService
from spdkctrl.services.lvol_service import LvolService
from spdkctrl.services.nbd_service import NbdService
from spdkctrl.services.vhost_service import VhostService

logger = logging.getLogger(__name__)


class EngineContext:
    """Connects to a running Engine and exposes the bindings as services.

    ``log_file`` is a path; when given, the wire trace of this connection
    is appended to it.
    """

    def __init__(self, socket_path: str, log_file: str = "") -> None:
        self._socket_path = socket_path
        self._log_path = log_file
        self._log_stream: IO[str] | None = None
        self._client: SpdkClient | None = None
        self._bdev_service: BdevService | None = None
        self._lvol_service: LvolService | None = None
        self._nbd_service: NbdService | None = None
        self._vhost_service: VhostService | None = None

    async def initialize(self) -> None:
        """Dial the Engine's socket."""
        if self._log_path:
            self._log_stream = open(self._log_path, "a")
        self._client = SpdkClient(self._socket_path, log_file=self._log_stream)
        try:
            await self._client.connect()
        except BaseException:
            self._close_log()
            raise
        logger.info("EngineContext connected to %s", self._socket_path)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._close_log()
        logger.info("EngineContext disconnected")

    async def __aenter__(self) -> EngineContext:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def client(self) -> SpdkClient:
        if self._client is None:
            raise RuntimeError("EngineContext is not initialized")
        return self._client

    @property
    def bdev_service(self) -> BdevService:
        if self._bdev_service is None:
            self._bdev_service = BdevService(self.client)
        return self._bdev_service

    @property
    def lvol_service(self) -> LvolService:
        if self._lvol_service is None:
            self._lvol_service = LvolService(self.client)
        return self._lvol_service

    @property
    def nbd_service(self) -> NbdService:
        if self._nbd_service is None:
            self._nbd_service = NbdService(self.client)
        return self._nbd_service

    @property
    def vhost_service(self) -> VhostService:
        if self._vhost_service is None:
            self._vhost_service = VhostService(self.client)
        return self._vhost_service

    def _close_log(self) -> None:
        if self._log_stream is not None:
            self._log_stream.close()
            self._log_stream = None
