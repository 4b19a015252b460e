"""CLI helpers for connecting to the SPDK app and printing results."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

import click

from spdkctrl.config import load_config
from spdkctrl.context import EngineContext
from spdkctrl.infra.rpc.errors import SpdkError


def get_socket_path(override: str | None = None) -> str:
    """Return the client socket path: --socket, then config, then the default."""
    if override:
        return override
    return load_config().resolved_socket_path


def get_socket_override() -> str | None:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return None
    obj = ctx.find_root().obj or {}
    return obj.get("socket")


async def get_engine_context(socket_path: str | None = None) -> EngineContext:
    """Create and connect an EngineContext. Raises OSError if the app is not reachable."""
    config = load_config()
    ctx = EngineContext(socket_path or config.resolved_socket_path, log_file=config.client.log_file)
    await ctx.initialize()
    return ctx


def to_jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if hasattr(value, "to_doc"):
        return value.to_doc()
    return value


def echo_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2))


def run_rpc(action: Callable[[EngineContext], Awaitable[Any]]) -> None:
    """Connect, run ``action`` and print its result as JSON.

    Exits with status 1 when the app is unreachable or answers with an error.
    """
    socket_path = get_socket_path(get_socket_override())

    async def _call() -> bool:
        try:
            ctx = await get_engine_context(socket_path)
        except OSError as e:
            click.echo(
                f"SPDK app not reachable at {socket_path} ({e}). Start with: spdkctrl app run",
                err=True,
            )
            return False
        try:
            result = await action(ctx)
        except SpdkError as e:
            click.echo(f"Error: {e}", err=True)
            return False
        finally:
            await ctx.close()
        echo_json(result)
        return True

    if not asyncio.run(_call()):
        raise SystemExit(1)
