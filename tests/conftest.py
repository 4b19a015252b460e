"""Shared fixtures: an in-process stand-in for the SPDK app's RPC socket."""

from __future__ import annotations

import asyncio
import json
import os
import shutil
import tempfile
from typing import Any, Callable

import pytest
import pytest_asyncio


class MockEngine:
    """Unix socket server that records requests and sends scripted replies.

    ``responder`` is called with each decoded request; a dict reply is sent
    as one JSON line, bytes/str are sent verbatim, None sends nothing.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.responder: Callable[[dict], Any] | None = None
        self.raw_lines: list[bytes] = []
        self.requests: asyncio.Queue[dict] = asyncio.Queue()
        self.connected = asyncio.Event()
        self._server: asyncio.AbstractServer | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def start(self) -> None:
        self._server = await asyncio.start_unix_server(self._handle, path=self.path)

    async def stop(self) -> None:
        await self.disconnect()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.append(writer)
        self.connected.set()
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                self.raw_lines.append(line)
                request = json.loads(line)
                await self.requests.put(request)
                if self.responder is not None:
                    reply = self.responder(request)
                    if reply is not None:
                        await self.send(reply)
        except (ConnectionResetError, BrokenPipeError):
            pass
        finally:
            writer.close()

    async def send(self, payload: Any) -> None:
        """Send a reply to the most recent connection."""
        if isinstance(payload, dict):
            data = json.dumps(payload).encode() + b"\n"
        elif isinstance(payload, str):
            data = payload.encode()
        else:
            data = payload
        writer = self._writers[-1]
        writer.write(data)
        await writer.drain()

    async def next_request(self, timeout: float = 2.0) -> dict:
        return await asyncio.wait_for(self.requests.get(), timeout)

    async def disconnect(self) -> None:
        """Drop every client connection."""
        for writer in self._writers:
            writer.close()
        self._writers.clear()


@pytest.fixture
def short_tmp():
    """Temp dir with a short path; Unix socket paths are limited to ~100 bytes."""
    path = tempfile.mkdtemp(prefix="spdk", dir="/tmp")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest_asyncio.fixture
async def engine(short_tmp):
    mock = MockEngine(os.path.join(short_tmp, "spdk.sock"))
    await mock.start()
    yield mock
    await mock.stop()
