"""Framing codec: JSON-RPC envelopes over a Unix stream socket.

Requests go out as one compact JSON object per line. Responses are read
as a stream of top-level JSON objects separated by arbitrary whitespace
(SPDK does not promise one object per line), so frames are found by
tracking brace depth rather than by splitting on newlines.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from spdkctrl.infra.rpc.errors import (
    ConnectionClosedError,
    EngineError,
    ProtocolError,
    TransportError,
)
from spdkctrl.infra.rpc.protocol import (
    NO_PARAMS,
    JsonRpcRequest,
    JsonRpcResponse,
    decode_response,
    encode,
    normalize_error,
)
from spdkctrl.infra.rpc.registry import CallRegistry

wire_logger = logging.getLogger("spdkctrl.infra.rpc.wire")

READ_CHUNK_SIZE = 64 * 1024

_WHITESPACE = b" \t\r\n"
_STRUCTURAL_RE = re.compile(rb'[{}\[\]"]')
_STRING_RE = re.compile(rb'["\\]')

# Substrings of OSError messages that only mean "the other side went away".
_CLOSED_MARKERS = (
    "closed",
    "connection reset",
    "connection lost",
    "broken pipe",
)


def classify_read_error(exc: BaseException | None) -> int | None:
    """Log level for a read failure, or None when it is not worth logging.

    A clean EOF is not logged; a connection that was closed or reset by
    either side is DEBUG; anything else is ERROR.
    """
    if exc is None or isinstance(exc, (EOFError, asyncio.IncompleteReadError)):
        return None
    if isinstance(exc, (ConnectionResetError, BrokenPipeError, ConnectionAbortedError)):
        return logging.DEBUG
    text = str(exc).lower()
    if any(marker in text for marker in _CLOSED_MARKERS):
        return logging.DEBUG
    return logging.ERROR


@dataclass(frozen=True)
class ResponseHeader:
    """What the reader needs to route a response before decoding its body."""

    id: int
    method: str | None
    error: EngineError | None = None


class FrameScanner:
    """Incrementally splits a byte stream into top-level JSON objects."""

    def __init__(self) -> None:
        self._buf = bytearray()
        self._pos = 0
        self._start = -1
        self._depth = 0
        self._in_string = False
        self._escape = False

    def feed(self, data: bytes) -> None:
        self._buf += data

    @property
    def has_partial(self) -> bool:
        """True when buffered bytes hold the beginning of an unfinished object."""
        return self._start >= 0 or bool(bytes(self._buf[self._pos:]).strip())

    def next_frame(self) -> bytes | None:
        """Return the next complete object, or None if more bytes are needed."""
        buf = self._buf
        n = len(buf)
        i = self._pos

        while i < n:
            if self._start < 0:
                c = buf[i]
                if c in _WHITESPACE:
                    i += 1
                    continue
                if c != ord("{"):
                    raise ProtocolError(
                        f"unexpected data between responses: {bytes(buf[i:i + 32])!r}"
                    )
                self._start = i
                self._depth = 1
                i += 1
                continue

            if self._in_string:
                if self._escape:
                    self._escape = False
                    i += 1
                    continue
                m = _STRING_RE.search(buf, i)
                if m is None:
                    i = n
                    break
                i = m.end()
                if buf[m.start()] == ord("\\"):
                    self._escape = True
                else:
                    self._in_string = False
                continue

            m = _STRUCTURAL_RE.search(buf, i)
            if m is None:
                i = n
                break
            c = buf[m.start()]
            i = m.end()
            if c == ord('"'):
                self._in_string = True
            elif c in b"{[":
                self._depth += 1
            else:
                self._depth -= 1
                if self._depth == 0:
                    frame = bytes(buf[self._start:i])
                    del buf[:i]
                    self._pos = 0
                    self._start = -1
                    return frame

        if self._start < 0:
            buf.clear()
            self._pos = 0
        else:
            self._pos = i
        return None


class JsonRpcCodec:
    """Reads and writes SPDK JSON-RPC envelopes on one connection.

    The codec owns the write lock and the call registry. Reading is not
    locked; exactly one task (the client's reader) may read.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        registry: CallRegistry | None = None,
        wire_log: logging.Logger | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.registry = registry or CallRegistry()
        self._write_lock = asyncio.Lock()
        self._scanner = FrameScanner()
        self._response: JsonRpcResponse | None = None
        self._wire = wire_log or wire_logger

    async def write_request(self, call_id: int, method: str, params: Any = NO_PARAMS) -> None:
        """Write one request. The call is registered before any byte is sent."""
        data = encode(JsonRpcRequest(method=method, id=call_id, params=params))

        async with self._write_lock:
            self.registry.register(call_id, method)
            self._wire.debug("write data=%s", data.decode().rstrip())
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as e:
                self.registry.resolve(call_id)
                self._wire.error("write error=%s", e)
                raise TransportError(f"write failed: {e}") from e

    async def read_response_header(self) -> ResponseHeader:
        """Block until one response is decoded and attach its method name.

        Raising here means the connection is unusable.
        """
        self._response = None
        response = decode_response(await self._read_frame())

        if not self.registry:
            raise ProtocolError(f"unexpected response id {response.id}: no calls in flight")
        method = self.registry.resolve(response.id)

        error = normalize_error(response.error) if response.is_error else None
        self._response = response
        return ResponseHeader(id=response.id, method=method, error=error)

    def read_response_body(self, decoder: Callable[[Any], Any] | None = None) -> Any:
        """Decode the buffered result with ``decoder``; None discards it.

        A decoder failure only concerns the one call, not the connection.
        """
        response, self._response = self._response, None
        if decoder is None or response is None:
            return None
        try:
            return decoder(response.result)
        except Exception as e:
            raise ProtocolError(f"reading body: {e}") from e

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            level = classify_read_error(e)
            if level is not None:
                self._wire.log(level, "close error=%s", e)

    async def _read_frame(self) -> Any:
        while True:
            frame = self._scanner.next_frame()
            if frame is not None:
                try:
                    return json.loads(frame)
                except (ValueError, RecursionError) as e:
                    raise ProtocolError(f"malformed response: {e}") from e

            try:
                chunk = await self._reader.read(READ_CHUNK_SIZE)
            except OSError as e:
                level = classify_read_error(e)
                if level is not None:
                    self._wire.log(level, "read error=%s", e)
                if level == logging.DEBUG:
                    raise ConnectionClosedError() from e
                raise TransportError(f"read failed: {e}") from e

            if not chunk:
                if self._scanner.has_partial:
                    raise TransportError("connection closed in the middle of a response")
                raise ConnectionClosedError()

            self._wire.debug("read data=%s", chunk.decode(errors="replace"))
            self._scanner.feed(chunk)
