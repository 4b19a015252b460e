"""CLI handlers for running the SPDK application."""

from __future__ import annotations

import asyncio
import signal

import click

from spdkctrl.commands._helpers import get_socket_override
from spdkctrl.config import load_config
from spdkctrl.infra.app import AppOptions, run_app, term_app
from spdkctrl.infra.rpc.errors import AppError


def _run(coro):
    return asyncio.run(coro)


@click.group("app")
def app_group():
    """Run the SPDK application."""
    pass


@app_group.command("run")
@click.option("--binary", default=None, help="SPDK application binary")
@click.option("--socket", "app_socket", default=None, help="RPC socket the app listens on")
@click.option("--vhost-dir", default=None, help="Directory for vhost-user sockets")
@click.option("--log-output", default=None, help="File receiving the app's stdout/stderr")
@click.option("--no-sudo", is_flag=True, help="Spawn and signal the app directly")
def app_run(binary, app_socket, vhost_dir, log_output, no_sudo: bool):
    """Run the SPDK application in the foreground until SIGINT/SIGTERM."""
    overrides = {
        "spdk_app": binary,
        "app_socket": app_socket or get_socket_override(),
        "vhost_sock_path": vhost_dir,
        "log_output": log_output,
    }
    if no_sudo:
        overrides["privilege_helper"] = ""
    options = AppOptions.from_config(load_config(), **overrides)

    async def _serve() -> bool:
        try:
            app = await run_app(options)
        except AppError as e:
            click.echo(f"Error: {e}", err=True)
            return False
        click.echo(f"SPDK app running (pid={app.pid}), socket {options.socket_path}")

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop_event.set)

        exited = asyncio.create_task(app.wait())
        stopping = asyncio.create_task(stop_event.wait())
        await asyncio.wait({exited, stopping}, return_when=asyncio.FIRST_COMPLETED)
        stopping.cancel()

        if exited.done():
            returncode = exited.result()
            click.echo(f"SPDK app exited on its own (exit code {returncode})", err=True)
            await term_app(app)
            return returncode == 0

        exited.cancel()
        click.echo("\nStopping SPDK app...")
        forced = await term_app(app, force=True)
        click.echo("SPDK app killed after stop timeout" if forced else "SPDK app stopped")
        return True

    if not _run(_serve()):
        raise SystemExit(1)
