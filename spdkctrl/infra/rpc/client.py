"""Asyncio Unix socket JSON-RPC client for SPDK."""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import IO, Any, Callable

from spdkctrl.infra.rpc.codec import JsonRpcCodec, wire_logger
from spdkctrl.infra.rpc.errors import (
    ConnectionClosedError,
    ProtocolError,
    TransportError,
)
from spdkctrl.infra.rpc.protocol import NO_PARAMS

logger = logging.getLogger(__name__)

_client_ids = itertools.count(1)


def _raw(result: Any) -> Any:
    return result


@dataclass
class _Waiter:
    method: str
    future: asyncio.Future
    decoder: Callable[[Any], Any]


class SpdkClient:
    """Asyncio Unix domain socket JSON-RPC 2.0 client for the SPDK app.

    One connection per client. Calls may be issued concurrently: requests
    are written under the codec's write lock and a single reader task
    routes each response to the caller whose id it carries, in whatever
    order SPDK answers.
    """

    def __init__(self, socket_path: str, log_file: IO[str] | None = None) -> None:
        self._socket_path = socket_path
        self._log_file = log_file
        self._tag = f"client-{next(_client_ids)}"
        self._wire_log: logging.Logger | None = None
        self._log_handler: logging.Handler | None = None
        self._codec: JsonRpcCodec | None = None
        self._reader_task: asyncio.Task | None = None
        self._waiters: dict[int, _Waiter] = {}
        self._id_counter = itertools.count(1)
        self._shutdown: TransportError | None = None
        self._closing = False

    @classmethod
    async def open(cls, socket_path: str, log_file: IO[str] | None = None) -> SpdkClient:
        """Create a client and connect it."""
        client = cls(socket_path, log_file)
        await client.connect()
        return client

    async def __aenter__(self) -> SpdkClient:
        if self._codec is None:
            await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def socket_path(self) -> str:
        return self._socket_path

    @property
    def connected(self) -> bool:
        return self._codec is not None and self._shutdown is None

    @property
    def pending_calls(self) -> int:
        """Number of request ids written but not yet answered."""
        if self._codec is None:
            return 0
        return len(self._codec.registry)

    async def connect(self) -> None:
        """Connect to the SPDK app's Unix socket and start the reader."""
        if self._codec is not None:
            raise RuntimeError("SpdkClient is already connected")
        reader, writer = await asyncio.open_unix_connection(self._socket_path)
        self._attach_log_file()
        self._codec = JsonRpcCodec(reader, writer, wire_log=self._wire_log)
        self._reader_task = asyncio.create_task(
            self._read_loop(), name=f"spdk-rpc-reader-{self._tag}"
        )
        logger.debug("Connected to SPDK at %s", self._socket_path)

    async def close(self) -> None:
        """Close the connection and fail every call still in flight."""
        if self._codec is None or self._closing:
            return
        self._closing = True
        self._fail_pending(ConnectionClosedError())
        await self._codec.close()
        if self._reader_task is not None:
            await self._reader_task
            self._reader_task = None
        self._detach_log_file()
        logger.debug("SPDK client disconnected from %s", self._socket_path)

    async def invoke(
        self,
        method: str,
        params: Any = NO_PARAMS,
        *,
        decoder: Callable[[Any], Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Call ``method`` and return its result.

        ``params`` is sent as the single params value; leave it at
        NO_PARAMS to omit the member, pass None to send ``null``.
        ``decoder`` turns the raw JSON result into the caller's type.

        Raises EngineError when SPDK answers with an error and
        TransportError when the connection fails. On cancellation or
        timeout the request stays on the wire and its eventual response
        is thrown away.
        """
        if self._codec is None:
            raise ConnectionClosedError("client is not connected")
        if self._shutdown is not None:
            raise ConnectionClosedError() from self._shutdown

        call_id = next(self._id_counter)
        future = asyncio.get_running_loop().create_future()
        self._waiters[call_id] = _Waiter(method, future, decoder or _raw)

        try:
            await self._codec.write_request(call_id, method, params)
        except BaseException:
            self._waiters.pop(call_id, None)
            raise

        try:
            if timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            if self._waiters.pop(call_id, None) is not None:
                logger.debug("Abandoned %s (id=%d)", method, call_id)
            raise

    async def _read_loop(self) -> None:
        assert self._codec is not None
        codec = self._codec
        try:
            while True:
                header = await codec.read_response_header()

                if header.method is None:
                    logger.warning("Discarding response for unknown id %d", header.id)
                    codec.read_response_body(None)
                    continue

                waiter = self._waiters.pop(header.id, None)
                if waiter is None or waiter.future.done():
                    logger.debug(
                        "Discarding response for abandoned %s (id=%d)",
                        header.method, header.id,
                    )
                    codec.read_response_body(None)
                    continue

                if header.error is not None:
                    codec.read_response_body(None)
                    waiter.future.set_exception(header.error)
                    continue

                try:
                    result = codec.read_response_body(waiter.decoder)
                except ProtocolError as e:
                    waiter.future.set_exception(e)
                else:
                    waiter.future.set_result(result)
        except TransportError as e:
            await self._shut_down(codec, e)
        except Exception as e:
            failure = TransportError(f"reader failed: {e!r}")
            failure.__cause__ = e
            await self._shut_down(codec, failure)

    async def _shut_down(self, codec: JsonRpcCodec, error: TransportError) -> None:
        if not self._closing:
            if isinstance(error, ConnectionClosedError):
                logger.debug("SPDK connection closed: %s", error)
            else:
                logger.error("SPDK connection failed: %s", error)
        self._fail_pending(error)
        if not self._closing:
            await codec.close()

    def _fail_pending(self, error: TransportError) -> None:
        if self._shutdown is None:
            self._shutdown = error
        if self._codec is not None:
            self._codec.registry.drain()
        waiters, self._waiters = self._waiters, {}
        for waiter in waiters.values():
            if not waiter.future.done():
                waiter.future.set_exception(error)

    def _attach_log_file(self) -> None:
        """Send this client's wire traffic to ``log_file`` at DEBUG."""
        if self._log_file is None:
            return
        wire_log = wire_logger.getChild(self._tag)
        wire_log.setLevel(logging.DEBUG)
        wire_log.propagate = False
        handler = logging.StreamHandler(self._log_file)
        handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
        wire_log.addHandler(handler)
        self._wire_log = wire_log
        self._log_handler = handler

    def _detach_log_file(self) -> None:
        if self._wire_log is None or self._log_handler is None:
            return
        self._log_handler.flush()
        self._wire_log.removeHandler(self._log_handler)
        self._log_handler = None
