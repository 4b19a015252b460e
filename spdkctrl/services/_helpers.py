"""Shared pieces for the method bindings."""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar

from spdkctrl.infra.rpc.protocol import NO_PARAMS

T = TypeVar("T")


class ArgsRecord(Protocol):
    def to_params(self) -> dict: ...


def params_of(args: ArgsRecord | None) -> Any:
    """Serialized params for ``args``; NO_PARAMS when nothing is left to send."""
    if args is None:
        return NO_PARAMS
    params = args.to_params()
    return params if params else NO_PARAMS


def as_str(result: Any) -> str:
    if not isinstance(result, str):
        raise TypeError(f"expected a string result, got {type(result).__name__}")
    return result


def as_bool(result: Any) -> bool:
    if not isinstance(result, bool):
        raise TypeError(f"expected a boolean result, got {type(result).__name__}")
    return result


def list_of(from_doc: Callable[[dict], T]) -> Callable[[Any], list[T]]:
    """Decoder for a JSON array of objects."""

    def decode(result: Any) -> list[T]:
        if result is None:
            return []
        if not isinstance(result, list):
            raise TypeError(f"expected a list result, got {type(result).__name__}")
        return [from_doc(doc) for doc in result]

    return decode
