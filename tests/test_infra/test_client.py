"""Tests for SpdkClient against a mock SPDK socket."""

from __future__ import annotations

import asyncio
import io
import json

import pytest
import pytest_asyncio

from spdkctrl.infra.rpc.client import SpdkClient
from spdkctrl.infra.rpc.errors import (
    ConnectionClosedError,
    EngineError,
    ProtocolError,
    is_json_error,
)
from spdkctrl.infra.rpc.protocol import ERROR_METHOD_NOT_FOUND


def echo_params(request: dict) -> dict:
    return {"jsonrpc": "2.0", "id": request["id"], "result": request.get("params", "none")}


@pytest_asyncio.fixture
async def client(engine):
    c = await SpdkClient.open(engine.path)
    yield c
    await c.close()


async def _until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


class TestInvoke:
    @pytest.mark.asyncio
    async def test_wire_format(self, engine, client):
        engine.responder = lambda req: {"id": req["id"], "result": []}
        result = await client.invoke("bdev_get_bdevs", {"name": "Malloc0"})
        assert result == []
        assert engine.raw_lines == [
            b'{"jsonrpc":"2.0","method":"bdev_get_bdevs","params":{"name":"Malloc0"},"id":1}\n'
        ]

    @pytest.mark.asyncio
    async def test_ids_increase_from_one(self, engine, client):
        engine.responder = echo_params
        await client.invoke("a")
        await client.invoke("b")
        ids = [json.loads(line)["id"] for line in engine.raw_lines]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_params_presence(self, engine, client):
        engine.responder = echo_params
        assert await client.invoke("m") == "none"
        assert await client.invoke("m", None) is None
        assert await client.invoke("m", [1, 2]) == [1, 2]
        assert b"params" not in engine.raw_lines[0]
        assert b'"params":null' in engine.raw_lines[1]

    @pytest.mark.asyncio
    async def test_decoder_applied(self, engine, client):
        engine.responder = lambda req: {"id": req["id"], "result": [{"name": "a"}, {"name": "b"}]}
        names = await client.invoke("m", decoder=lambda r: [d["name"] for d in r])
        assert names == ["a", "b"]

    @pytest.mark.asyncio
    async def test_null_result_is_success(self, engine, client):
        engine.responder = lambda req: {"id": req["id"], "result": None}
        assert await client.invoke("m") is None

    @pytest.mark.asyncio
    async def test_engine_error(self, engine, client):
        engine.responder = lambda req: {
            "id": req["id"],
            "error": {"code": ERROR_METHOD_NOT_FOUND, "message": "Method not found"},
        }
        with pytest.raises(EngineError) as exc_info:
            await client.invoke("no_such_method")
        assert is_json_error(exc_info.value, ERROR_METHOD_NOT_FOUND)
        assert str(exc_info.value) == "code: -32601 msg: Method not found"
        assert client.connected

    @pytest.mark.asyncio
    async def test_string_errors(self, engine, client):
        replies = iter(["Invalid parameters", ""])
        engine.responder = lambda req: {"id": req["id"], "error": next(replies)}
        with pytest.raises(EngineError, match="^Invalid parameters$"):
            await client.invoke("m")
        with pytest.raises(EngineError, match="^unspecified error$"):
            await client.invoke("m")

    @pytest.mark.asyncio
    async def test_decoder_failure_only_fails_that_call(self, engine, client):
        engine.responder = lambda req: {"id": req["id"], "result": "not a list"}

        def decoder(result):
            if not isinstance(result, list):
                raise TypeError("expected a list")
            return result

        with pytest.raises(ProtocolError, match="reading body"):
            await client.invoke("m", decoder=decoder)
        assert client.connected
        assert await client.invoke("m") == "not a list"

    @pytest.mark.asyncio
    async def test_unexpected_decoder_exception_only_fails_that_call(self, engine, client):
        engine.responder = lambda req: {
            "id": req["id"],
            "result": [{"name": "x", "supported_io_types": "bogus"}],
        }

        def decoder(result):
            return [doc["supported_io_types"].get("read") for doc in result]

        with pytest.raises(ProtocolError, match="reading body"):
            await client.invoke("m", decoder=decoder, timeout=5)
        assert client.connected

        engine.responder = lambda req: {"id": req["id"], "result": "ok"}
        assert await client.invoke("m", timeout=5) == "ok"
        await client.close()

    @pytest.mark.asyncio
    async def test_deeply_nested_response_breaks_connection(self, engine, client):
        engine.responder = lambda req: '{"id":%d,"result":%s%s}' % (
            req["id"], "[" * 100000, "]" * 100000,
        )
        with pytest.raises(ProtocolError, match="malformed response"):
            await client.invoke("m", timeout=5)
        assert not client.connected
        with pytest.raises(ConnectionClosedError):
            await client.invoke("m")
        await client.close()

    @pytest.mark.asyncio
    async def test_not_connected(self, engine):
        c = SpdkClient(engine.path)
        with pytest.raises(ConnectionClosedError, match="not connected"):
            await c.invoke("m")


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_out_of_order_responses(self, engine, client):
        calls = [asyncio.create_task(client.invoke(f"m{i}", i)) for i in range(5)]
        requests = [await engine.next_request() for _ in range(5)]
        assert client.pending_calls == 5

        for req in reversed(requests):
            await engine.send({"id": req["id"], "result": req["params"] * 10})

        results = await asyncio.gather(*calls)
        assert results == [0, 10, 20, 30, 40]
        assert client.pending_calls == 0

    @pytest.mark.asyncio
    async def test_responses_in_one_chunk(self, engine, client):
        calls = [asyncio.create_task(client.invoke("m")) for _ in range(3)]
        requests = [await engine.next_request() for _ in range(3)]
        blob = "".join(json.dumps({"id": r["id"], "result": r["id"]}) for r in requests)
        await engine.send(blob)
        assert sorted(await asyncio.gather(*calls)) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_unknown_id_discarded(self, engine, client):
        engine.responder = lambda req: (
            json.dumps({"id": 99, "result": "stray"})
            + json.dumps({"id": req["id"], "result": "mine"})
        )
        assert await client.invoke("m") == "mine"
        assert client.connected


class TestAbandonment:
    @pytest.mark.asyncio
    async def test_timeout_leaves_request_registered(self, engine, client):
        with pytest.raises(asyncio.TimeoutError):
            await client.invoke("slow", timeout=0.05)
        late = await engine.next_request()
        assert client.pending_calls == 1

        await engine.send({"id": late["id"], "result": True})
        await _until(lambda: client.pending_calls == 0)

        engine.responder = lambda req: {"id": req["id"], "result": "ok"}
        assert await client.invoke("fast") == "ok"

    @pytest.mark.asyncio
    async def test_cancelled_caller(self, engine, client):
        task = asyncio.create_task(client.invoke("slow"))
        req = await engine.next_request()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        await engine.send({"id": req["id"], "result": True})
        await _until(lambda: client.pending_calls == 0)
        assert client.connected


class TestShutdown:
    @pytest.mark.asyncio
    async def test_close_fails_pending_calls(self, engine, client):
        calls = [asyncio.create_task(client.invoke("m")) for _ in range(3)]
        for _ in range(3):
            await engine.next_request()

        await client.close()
        results = await asyncio.gather(*calls, return_exceptions=True)
        assert all(isinstance(r, ConnectionClosedError) for r in results)
        assert str(results[0]) == "connection is shut down"
        assert client.pending_calls == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, client):
        await client.close()
        await client.close()

    @pytest.mark.asyncio
    async def test_engine_disconnect(self, engine, client):
        call = asyncio.create_task(client.invoke("m"))
        await engine.next_request()
        await engine.disconnect()

        with pytest.raises(ConnectionClosedError):
            await call
        assert not client.connected
        with pytest.raises(ConnectionClosedError):
            await client.invoke("m")

    @pytest.mark.asyncio
    async def test_malformed_error_breaks_connection(self, engine, client):
        engine.responder = lambda req: {"id": req["id"], "error": 42}
        with pytest.raises(ProtocolError):
            await client.invoke("m")
        assert not client.connected
        with pytest.raises(ConnectionClosedError):
            await client.invoke("m")

    @pytest.mark.asyncio
    async def test_response_without_result_or_error(self, engine, client):
        engine.responder = lambda req: {"jsonrpc": "2.0", "id": req["id"]}
        with pytest.raises(ProtocolError):
            await client.invoke("m")
        assert not client.connected

    @pytest.mark.asyncio
    async def test_unsolicited_response_is_fatal(self, engine, client):
        await engine.connected.wait()
        await engine.send({"id": 1, "result": True})
        await _until(lambda: not client.connected)
        with pytest.raises(ConnectionClosedError):
            await client.invoke("m")


class TestWireLog:
    @pytest.mark.asyncio
    async def test_log_file_receives_traffic(self, engine):
        buf = io.StringIO()
        engine.responder = lambda req: {"id": req["id"], "result": True}
        async with SpdkClient(engine.path, log_file=buf) as c:
            await c.invoke("bdev_get_bdevs")
        text = buf.getvalue()
        assert 'write data={"jsonrpc":"2.0","method":"bdev_get_bdevs","id":1}' in text
        assert "read data=" in text
