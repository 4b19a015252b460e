"""Tests for JSON-RPC envelopes and error normalization."""

from __future__ import annotations

import json

import pytest

from spdkctrl.infra.rpc.errors import (
    EngineError,
    ProtocolError,
    ValidationError,
    format_json_error,
    is_json_error,
    parse_json_error,
)
from spdkctrl.infra.rpc.protocol import (
    ERROR_INVALID_PARAMS,
    ERROR_METHOD_NOT_FOUND,
    NO_PARAMS,
    JsonRpcRequest,
    decode_response,
    encode,
    normalize_error,
)


class TestJsonRpcRequest:
    def test_encode_is_compact_with_newline(self):
        data = encode(JsonRpcRequest("bdev_get_bdevs", 1, {"name": "Malloc0"}))
        assert data == b'{"jsonrpc":"2.0","method":"bdev_get_bdevs","params":{"name":"Malloc0"},"id":1}\n'

    def test_no_params_omits_member(self):
        data = encode(JsonRpcRequest("bdev_get_bdevs", 7))
        assert b"params" not in data
        assert json.loads(data) == {"jsonrpc": "2.0", "method": "bdev_get_bdevs", "id": 7}

    def test_none_params_sends_null(self):
        data = json.loads(encode(JsonRpcRequest("m", 1, None)))
        assert "params" in data
        assert data["params"] is None

    def test_params_single_value(self):
        data = json.loads(encode(JsonRpcRequest("m", 1, "hello")))
        assert data["params"] == "hello"

    def test_empty_method_rejected(self):
        with pytest.raises(ValueError):
            JsonRpcRequest("", 1)

    @pytest.mark.parametrize("bad_id", [-1, True, "1", 1.5])
    def test_id_must_be_unsigned_int(self, bad_id):
        with pytest.raises(ValueError):
            JsonRpcRequest("m", bad_id)

    def test_no_params_repr(self):
        assert repr(NO_PARAMS) == "NO_PARAMS"


class TestDecodeResponse:
    def test_result(self):
        response = decode_response({"jsonrpc": "2.0", "id": 3, "result": [1, 2]})
        assert response.id == 3
        assert response.result == [1, 2]
        assert not response.is_error

    def test_explicit_null_result_is_success(self):
        response = decode_response({"id": 3, "result": None})
        assert response.has_result
        assert not response.is_error

    def test_missing_result_and_error_is_error(self):
        response = decode_response({"id": 3})
        assert response.is_error

    def test_missing_jsonrpc_accepted(self):
        assert decode_response({"id": 1, "result": True}).result is True

    @pytest.mark.parametrize("data", [[], "x", {"result": 1}, {"id": -4, "result": 1}, {"id": "1"}])
    def test_invalid_envelope(self, data):
        with pytest.raises(ProtocolError):
            decode_response(data)


class TestNormalizeError:
    def test_object_error(self):
        err = normalize_error({"code": ERROR_METHOD_NOT_FOUND, "message": "Method not found"})
        assert isinstance(err, EngineError)
        assert err.code == -32601
        assert err.message == "Method not found"
        assert str(err) == "code: -32601 msg: Method not found"

    def test_float_code_truncated(self):
        assert normalize_error({"code": -32602.0, "message": "x"}).code == ERROR_INVALID_PARAMS

    def test_string_error(self):
        err = normalize_error("Invalid parameters")
        assert err.code is None
        assert str(err) == "Invalid parameters"

    def test_empty_string_error(self):
        assert str(normalize_error("")) == "unspecified error"

    @pytest.mark.parametrize(
        "raw",
        [
            {"code": -1},
            {"message": "x"},
            {"code": "x", "message": "y"},
            {"code": True, "message": "y"},
            {"code": -1, "message": 5},
            42,
            ["x"],
        ],
    )
    def test_invalid_shapes(self, raw):
        with pytest.raises(ProtocolError):
            normalize_error(raw)


class TestErrorHelpers:
    def test_format_and_parse(self):
        text = format_json_error(-32602, "Invalid parameters")
        assert parse_json_error(text) == (-32602, "Invalid parameters")

    def test_parse_multiline_message(self):
        assert parse_json_error("code: -1 msg: line one\nline two") == (-1, "line one\nline two")

    def test_parse_other_text(self):
        assert parse_json_error("something went wrong") is None

    def test_is_json_error(self):
        err = EngineError("File exists", code=-17)
        assert is_json_error(err)
        assert is_json_error(err, -17)
        assert not is_json_error(err, -2)

    def test_is_json_error_rejects_string_errors(self):
        assert not is_json_error(EngineError("plain"))
        assert not is_json_error(RuntimeError("something went wrong"))

    def test_is_json_error_parses_formatted_text(self):
        err = RuntimeError(str(EngineError("No such device", code=-19)))
        assert is_json_error(err)
        assert is_json_error(err, -19)
        assert not is_json_error(err, -17)

    def test_validation_error_message(self):
        err = ValidationError("uuid and lvs_name are mutually exclusive")
        assert isinstance(err, ValueError)
        assert str(err) == "invalid parameters: uuid and lvs_name are mutually exclusive"
