"""CLI handlers for config commands."""

from __future__ import annotations

import click

from spdkctrl.config import init_config, load_config, set_config_value


@click.group("config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command("init")
def config_init():
    """Create default configuration file."""
    path = init_config()
    click.echo(f"Configuration created at: {path}")


@config_group.command("show")
def config_show():
    """Show current configuration."""
    config = load_config()
    click.echo(f"Config file: {config.config_path}")
    click.echo(f"  App binary: {config.app.binary or '(not set)'}")
    click.echo(f"  App socket: {config.app.socket}")
    click.echo(f"  Vhost socket dir: {config.app.vhost_socket_path or '(default)'}")
    click.echo(f"  Privilege helper: {config.app.privilege_helper or '(none)'}")
    click.echo(f"  Startup timeout: {config.app.startup_timeout}s")
    click.echo(f"  Stop timeout: {config.app.stop_timeout}s")
    click.echo(f"  Client socket: {config.resolved_socket_path}")
    click.echo(f"  Client wire log: {config.client.log_file or '(off)'}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a configuration value.

    Modifies the TOML config file. Key uses dot notation, e.g.:
    app.binary, app.socket, client.log_file
    """
    try:
        set_config_value(key, value)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Set {key} = {value}")
