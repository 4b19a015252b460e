"""SPDK flavoured JSON-RPC 2.0 envelopes.

Differences from textbook JSON-RPC 2.0 that SPDK relies on:

- ``params`` is a single value, not an array, and is left out entirely
  when the caller has nothing to send.
- ``id`` is always an unsigned integer.
- Responses may omit ``jsonrpc``, and the ``error`` member is either a
  ``{code, message}`` object or a bare string.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from spdkctrl.infra.rpc.errors import EngineError, ProtocolError

JSONRPC_VERSION = "2.0"

# From SPDK's include/spdk/jsonrpc.h
ERROR_PARSE_ERROR = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL_ERROR = -32603
ERROR_INVALID_STATE = -1

UNSPECIFIED_ERROR = "unspecified error"


class _NoParams:
    """Marker for "no params member on the wire" (distinct from null)."""

    def __repr__(self) -> str:
        return "NO_PARAMS"


NO_PARAMS: Any = _NoParams()


@dataclass(frozen=True)
class JsonRpcRequest:
    """JSON-RPC 2.0 request as SPDK expects it."""

    method: str
    id: int
    params: Any = NO_PARAMS

    def __post_init__(self) -> None:
        if not self.method:
            raise ValueError("JSON-RPC method cannot be empty")
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id < 0:
            raise ValueError(f"JSON-RPC id must be an unsigned integer, got {self.id!r}")

    def to_dict(self) -> dict:
        d: dict = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not NO_PARAMS:
            d["params"] = self.params
        d["id"] = self.id
        return d


@dataclass(frozen=True)
class JsonRpcResponse:
    """JSON-RPC 2.0 response as sent by SPDK.

    ``has_result`` tells an explicit ``"result": null`` apart from a
    missing member.
    """

    id: int
    result: Any = None
    error: Any = None
    has_result: bool = False

    @property
    def is_error(self) -> bool:
        return self.error is not None or not self.has_result


def encode(request: JsonRpcRequest) -> bytes:
    """Encode a request as one compact JSON object followed by a newline."""
    return json.dumps(request.to_dict(), separators=(",", ":")).encode() + b"\n"


def decode_response(data: Any) -> JsonRpcResponse:
    """Turn one decoded JSON value into a response envelope.

    ``jsonrpc`` is not checked; SPDK does not always echo it.
    """
    if not isinstance(data, dict):
        raise ProtocolError(f"expected a JSON object, got {type(data).__name__}")
    msg_id = data.get("id")
    if isinstance(msg_id, bool) or not isinstance(msg_id, int) or msg_id < 0:
        raise ProtocolError(f"invalid response id {msg_id!r}")
    return JsonRpcResponse(
        id=msg_id,
        result=data.get("result"),
        error=data.get("error"),
        has_result="result" in data,
    )


def normalize_error(raw: Any) -> EngineError:
    """Turn the polymorphic ``error`` member into an EngineError.

    Raises ProtocolError for shapes SPDK never sends; the connection is
    considered broken after that.
    """
    if isinstance(raw, dict):
        if "code" not in raw or "message" not in raw:
            raise ProtocolError(f"invalid error {raw!r}")
        code = raw["code"]
        message = raw["message"]
        if isinstance(code, bool) or not isinstance(code, (int, float)):
            raise ProtocolError(f"invalid error content {raw!r}")
        if not isinstance(message, str):
            raise ProtocolError(f"invalid error content {raw!r}")
        return EngineError(message, code=int(code))

    if isinstance(raw, str):
        return EngineError(raw or UNSPECIFIED_ERROR)

    raise ProtocolError(f"invalid error {raw!r}")
