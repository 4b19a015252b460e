"""SPDK application lifecycle management."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import shlex
import signal
import stat
import subprocess
from dataclasses import dataclass
from typing import IO, Any

from spdkctrl.config import (
    DEFAULT_APP_SOCKET,
    DEFAULT_TIMEOUT,
    ENV_APP_BINARY,
    ENV_APP_SOCKET,
    ENV_VHOST_SOCKET_PATH,
    AppConfig,
)
from spdkctrl.infra.rpc.errors import (
    AppError,
    AppExitedError,
    AppNotConfiguredError,
    AppPermissionError,
    AppTimeoutError,
)

logger = logging.getLogger(__name__)

SOCKET_POLL_INTERVAL = 0.001


@dataclass
class AppOptions:
    """How to launch the Engine.

    ``log_output`` receives the Engine's stdout and stderr: a path (opened
    for append) or an open binary file. ``None`` discards the output.
    An empty ``privilege_helper`` spawns, signals and chmods directly.
    """

    spdk_app: str = ""
    app_socket: str = ""
    vhost_sock_path: str = ""
    log_output: str | os.PathLike | IO[bytes] | None = None
    privilege_helper: str = "sudo"
    startup_timeout: float = DEFAULT_TIMEOUT
    stop_timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, **overrides: Any) -> AppOptions:
        """Options from SPDK_APP_BINARY, SPDK_APP_SOCKET and SPDK_VHOST_SOCKET_PATH."""
        options = cls(
            spdk_app=os.environ.get(ENV_APP_BINARY, ""),
            app_socket=os.environ.get(ENV_APP_SOCKET, ""),
            vhost_sock_path=os.environ.get(ENV_VHOST_SOCKET_PATH, ""),
        )
        return options.with_overrides(**overrides)

    @classmethod
    def from_config(cls, config: AppConfig, **overrides: Any) -> AppOptions:
        """Options from a loaded config; keyword overrides win."""
        section = config.app
        options = cls(
            spdk_app=section.binary,
            app_socket=section.socket,
            vhost_sock_path=section.vhost_socket_path,
            privilege_helper=section.privilege_helper,
            startup_timeout=section.startup_timeout,
            stop_timeout=section.stop_timeout,
        )
        return options.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> AppOptions:
        """Copy with the given fields replaced. ``None`` values are ignored."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    @property
    def socket_path(self) -> str:
        """The control socket the Engine will create."""
        return self.app_socket or DEFAULT_APP_SOCKET

    @property
    def helper_argv(self) -> list[str]:
        return shlex.split(self.privilege_helper) if self.privilege_helper else []

    def to_args(self) -> list[str]:
        """Engine argv; ``-r`` and ``-S`` only when set."""
        args = [self.spdk_app]
        if self.app_socket:
            args += ["-r", self.app_socket]
        if self.vhost_sock_path:
            args += ["-S", self.vhost_sock_path]
        return args

    def command(self) -> list[str]:
        return self.helper_argv + self.to_args()


class SpdkApp:
    """Manages one Engine process.

    The Engine runs in its own process group so that a privilege helper
    and the Engine under it are signalled together.
    """

    def __init__(self, options: AppOptions) -> None:
        self._options = options
        self._process: asyncio.subprocess.Process | None = None
        self._owned_output: IO[bytes] | None = None

    @property
    def options(self) -> AppOptions:
        return self._options

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the Engine and wait until its control socket is usable."""
        if self.is_running:
            logger.info("SPDK app already running (pid %d)", self._process.pid)
            return
        if not self._options.spdk_app:
            logger.error("SPDK application binary is not configured")
            raise AppNotConfiguredError()

        socket_path = self._options.socket_path
        if os.path.exists(socket_path):
            logger.warning("Socket %s exists before start, it may be stale", socket_path)

        cmd = self._options.command()
        logger.info("Starting SPDK app: %s", " ".join(cmd))
        output = self._open_output()
        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                process_group=0,
            )
        except OSError:
            self._close_output()
            raise

        try:
            await self._wait_for_socket(socket_path)
            await self._make_socket_accessible(socket_path)
        except AppError as e:
            logger.error("SPDK app failed to start: %s", e)
            await self._abort()
            raise
        except BaseException:
            await self._abort()
            raise
        logger.info("SPDK app is ready (pid %d)", self._process.pid)

    async def stop(self, force: bool = True) -> bool:
        """Terminate the Engine's process group.

        Returns True only when the group had to be killed after
        ``stop_timeout``. Without ``force`` this waits for as long as the
        Engine takes to exit.
        """
        if self._process is None:
            return False
        if not self.is_running:
            logger.info("SPDK app %d already exited (%s)", self._process.pid, self._process.returncode)
            self._release()
            return False

        process = self._process
        logger.info("Stopping SPDK app %d", process.pid)
        await self._signal_group(signal.SIGTERM)

        forced = False
        if force:
            try:
                await asyncio.wait_for(process.wait(), timeout=self._options.stop_timeout)
            except asyncio.TimeoutError:
                logger.warning("SPDK app %d did not stop gracefully, killing...", process.pid)
                await self._signal_group(signal.SIGKILL)
                await process.wait()
                forced = True
        else:
            await process.wait()

        self._release()
        logger.info("Stopped SPDK app %d", process.pid)
        return forced

    async def wait(self) -> int | None:
        """Wait for the Engine to exit on its own."""
        if self._process is None:
            return None
        return await self._process.wait()

    async def _wait_for_socket(self, socket_path: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._options.startup_timeout
        while True:
            if os.path.exists(socket_path):
                return
            if self._process.returncode is not None:
                raise AppExitedError(self._process.returncode)
            if loop.time() >= deadline:
                logger.info("Killing SPDK app %d", self._process.pid)
                await self._signal_group(signal.SIGKILL)
                await self._process.wait()
                raise AppTimeoutError(socket_path)
            await asyncio.sleep(SOCKET_POLL_INTERVAL)

    async def _make_socket_accessible(self, socket_path: str) -> None:
        helper = self._options.helper_argv
        if not helper:
            try:
                mode = stat.S_IMODE(os.stat(socket_path).st_mode)
                os.chmod(socket_path, mode | 0o666)
            except OSError as e:
                raise AppPermissionError(f"chmod {socket_path}: {e}") from e
            return

        proc = await asyncio.create_subprocess_exec(
            *helper, "chmod", "a+rw", socket_path,
            stdin=subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            out, _ = await asyncio.wait_for(
                proc.communicate(), timeout=self._options.startup_timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise AppPermissionError(f"chmod {socket_path}: timed out")
        if proc.returncode != 0:
            detail = out.decode(errors="replace").strip()
            raise AppPermissionError(f"chmod {socket_path}: {detail or f'exit code {proc.returncode}'}")

    async def _signal_group(self, sig: signal.Signals) -> None:
        # process_group=0 makes the Engine's pid its process group id
        pgid = self._process.pid
        helper = self._options.helper_argv
        if not helper:
            try:
                os.killpg(pgid, sig)
            except ProcessLookupError:
                pass
            return

        signame = sig.name.removeprefix("SIG")
        proc = await asyncio.create_subprocess_exec(
            *helper, "kill", "-s", signame, "--", f"-{pgid}",
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, err = await proc.communicate()
        if proc.returncode != 0:
            logger.warning(
                "kill -s %s -%d failed: %s", signame, pgid, err.decode(errors="replace").strip()
            )

    async def _abort(self) -> None:
        """Tear down a half-started Engine."""
        if self.is_running:
            await self._signal_group(signal.SIGKILL)
            await self._process.wait()
        self._release()

    def _open_output(self) -> Any:
        out = self._options.log_output
        if out is None:
            return subprocess.DEVNULL
        if isinstance(out, (str, os.PathLike)):
            self._owned_output = open(out, "ab")
            return self._owned_output
        return out

    def _close_output(self) -> None:
        if self._owned_output is not None:
            self._owned_output.close()
            self._owned_output = None

    def _release(self) -> None:
        self._process = None
        self._close_output()


async def run_app(options: AppOptions | None = None, **overrides: Any) -> SpdkApp:
    """Start an Engine and return its handle once the socket is usable.

    Without ``options`` the environment supplies the defaults.
    """
    if options is None:
        options = AppOptions.from_env(**overrides)
    else:
        options = options.with_overrides(**overrides)
    app = SpdkApp(options)
    await app.start()
    return app


async def term_app(app: SpdkApp | None, force: bool = True) -> bool:
    """Stop ``app``; True when it had to be killed."""
    if app is None:
        return False
    return await app.stop(force=force)
