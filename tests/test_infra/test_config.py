"""Tests for configuration loading."""

from __future__ import annotations

import tomllib

import pytest

from spdkctrl.config import (
    DEFAULT_CONFIG_TOML,
    AppConfig,
    init_config,
    load_config,
    set_config_value,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SPDK_APP_BINARY", "SPDK_APP_SOCKET", "SPDK_VHOST_SOCKET_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    def test_default_config(self):
        config = AppConfig()
        assert config.app.socket == "/var/tmp/spdk.sock"
        assert config.app.privilege_helper == "sudo"
        assert config.app.startup_timeout == 10.0
        assert config.resolved_socket_path == "/var/tmp/spdk.sock"

    def test_load_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.app.binary == ""
        assert config.app.socket == "/var/tmp/spdk.sock"
        assert config.client.log_file == ""

    def test_default_toml_parses(self):
        raw = tomllib.loads(DEFAULT_CONFIG_TOML)
        assert raw["app"]["stop_timeout"] == 10.0
        assert raw["client"]["socket_path"] == ""

    def test_load_custom_config(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[app]\nbinary = "/opt/spdk/build/bin/vhost"\nsocket = "/run/spdk.sock"\n'
            'privilege_helper = ""\nstartup_timeout = 30\n\n'
            '[client]\nsocket_path = "/run/other.sock"\nlog_file = "/tmp/wire.log"\n'
        )
        config = load_config(config_file)
        assert config.app.binary == "/opt/spdk/build/bin/vhost"
        assert config.app.privilege_helper == ""
        assert config.app.startup_timeout == 30.0
        assert config.app.stop_timeout == 10.0
        assert config.resolved_socket_path == "/run/other.sock"
        assert config.client.log_file == "/tmp/wire.log"

    def test_env_overlay(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SPDK_APP_BINARY", "/env/vhost")
        monkeypatch.setenv("SPDK_APP_SOCKET", "/env/spdk.sock")
        monkeypatch.setenv("SPDK_VHOST_SOCKET_PATH", "/env/vhost-dir")
        config = load_config(tmp_path / "nonexistent.toml")
        assert config.app.binary == "/env/vhost"
        assert config.app.socket == "/env/spdk.sock"
        assert config.app.vhost_socket_path == "/env/vhost-dir"
        assert config.resolved_socket_path == "/env/spdk.sock"

    def test_init_config(self, tmp_path):
        path = init_config(tmp_path / "sub" / "config.toml")
        assert path.exists()
        assert path.read_text() == DEFAULT_CONFIG_TOML


class TestSetConfigValue:
    def test_set_string(self, tmp_path):
        path = tmp_path / "config.toml"
        set_config_value("app.binary", "/opt/vhost", path)
        assert load_config(path).app.binary == "/opt/vhost"

    def test_set_keeps_float_type(self, tmp_path):
        path = init_config(tmp_path / "config.toml")
        set_config_value("app.stop_timeout", "3", path)
        config = load_config(path)
        assert config.app.stop_timeout == 3.0
        with open(path, "rb") as f:
            assert isinstance(tomllib.load(f)["app"]["stop_timeout"], float)

    def test_set_empty_helper(self, tmp_path):
        path = init_config(tmp_path / "config.toml")
        set_config_value("app.privilege_helper", "", path)
        assert load_config(path).app.privilege_helper == ""

    def test_set_new_table(self, tmp_path):
        path = init_config(tmp_path / "config.toml")
        set_config_value("extra.enabled", "true", path)
        with open(path, "rb") as f:
            assert tomllib.load(f)["extra"]["enabled"] is True

    def test_set_through_scalar_rejected(self, tmp_path):
        path = init_config(tmp_path / "config.toml")
        with pytest.raises(ValueError):
            set_config_value("app.binary.sub", "x", path)
