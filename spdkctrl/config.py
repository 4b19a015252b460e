"""Configuration loading: TOML file + environment variable overlay."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "spdkctrl"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"

DEFAULT_APP_SOCKET = "/var/tmp/spdk.sock"
DEFAULT_TIMEOUT = 10.0

ENV_APP_BINARY = "SPDK_APP_BINARY"
ENV_APP_SOCKET = "SPDK_APP_SOCKET"
ENV_VHOST_SOCKET_PATH = "SPDK_VHOST_SOCKET_PATH"

DEFAULT_CONFIG_TOML = """\
[app]
binary = ""
socket = "/var/tmp/spdk.sock"
vhost_socket_path = ""
# empty string: spawn, signal and chmod without a helper
privilege_helper = "sudo"
startup_timeout = 10.0
stop_timeout = 10.0

[client]
# socket_path defaults to app.socket
socket_path = ""
log_file = ""
"""


@dataclass
class EngineConfig:
    binary: str = ""
    socket: str = DEFAULT_APP_SOCKET
    vhost_socket_path: str = ""
    privilege_helper: str = "sudo"
    startup_timeout: float = DEFAULT_TIMEOUT
    stop_timeout: float = DEFAULT_TIMEOUT


@dataclass
class ClientConfig:
    socket_path: str = ""
    log_file: str = ""


@dataclass
class AppConfig:
    app: EngineConfig = field(default_factory=EngineConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    config_path: Path = DEFAULT_CONFIG_PATH

    @property
    def resolved_socket_path(self) -> str:
        """Socket the client dials: client.socket_path, else the engine's socket."""
        return self.client.socket_path or self.app.socket


def _env_overlay(config: AppConfig) -> None:
    """Override config values with environment variables where applicable."""
    if binary := os.environ.get(ENV_APP_BINARY):
        config.app.binary = binary
    if socket := os.environ.get(ENV_APP_SOCKET):
        config.app.socket = socket
    if vhost := os.environ.get(ENV_VHOST_SOCKET_PATH):
        config.app.vhost_socket_path = vhost


def _read_raw(path: Path) -> dict:
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return tomllib.loads(DEFAULT_CONFIG_TOML)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file with env var overlay."""
    path = config_path or DEFAULT_CONFIG_PATH
    raw = _read_raw(path)

    app_raw = raw.get("app", {})
    client_raw = raw.get("client", {})

    config = AppConfig(
        app=EngineConfig(
            binary=app_raw.get("binary", ""),
            socket=app_raw.get("socket", DEFAULT_APP_SOCKET),
            vhost_socket_path=app_raw.get("vhost_socket_path", ""),
            privilege_helper=app_raw.get("privilege_helper", "sudo"),
            startup_timeout=float(app_raw.get("startup_timeout", DEFAULT_TIMEOUT)),
            stop_timeout=float(app_raw.get("stop_timeout", DEFAULT_TIMEOUT)),
        ),
        client=ClientConfig(
            socket_path=client_raw.get("socket_path", ""),
            log_file=client_raw.get("log_file", ""),
        ),
        config_path=path,
    )

    _env_overlay(config)
    return config


def init_config(config_path: Path | None = None) -> Path:
    """Create default config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML)
    return path


def _coerce(value: str, current):
    """Convert a command-line string to the type of the value it replaces."""
    if isinstance(current, bool):
        if value.lower() not in ("true", "false"):
            raise ValueError(f"expected true or false, got {value!r}")
        return value.lower() == "true"
    if isinstance(current, float):
        return float(value)
    if isinstance(current, int):
        return int(value)
    if current is None:
        # unknown key: guess like a TOML literal
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        if value.isdigit():
            return int(value)
    return value


def set_config_value(key: str, value: str, config_path: Path | None = None) -> Path:
    """Set a dot-notation key (e.g. ``app.binary``) in the TOML file.

    Starts from the default TOML when the file does not exist yet.
    """
    import tomli_w

    path = config_path or DEFAULT_CONFIG_PATH
    data = _read_raw(path)

    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        target = target.setdefault(part, {})
        if not isinstance(target, dict):
            raise ValueError(f"{key}: {part} is not a table")

    final_key = parts[-1]
    target[final_key] = _coerce(value, target.get(final_key))

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    return path
