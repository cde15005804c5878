"""
oltshell CLI - Main entry point.

Usage:
    oltshell init                                   # Write default config
    oltshell vendors                                # Registered drivers
    oltshell caps VENDOR [MODEL] [--json]           # Capability matrix
    oltshell validate [INVENTORY]                   # Protocol checks
    oltshell exec HOST -v VENDOR -u USER -c CMD...  # Run commands
    oltshell probe HOST -v VENDOR -u USER           # Connect + liveness
"""

import json
import logging
import os
import sys
from pathlib import Path

import click

from oltshell.core.config import Config, get_config
from oltshell.core.errors import OltShellError, SessionCloseError, categorize_error
from oltshell.core.inventory import load_inventory, validate_inventory
from oltshell.core.logging_setup import configure_logging
from oltshell.drivers.base import run_commands
from oltshell.drivers.registry import get_capabilities, get_default_factory
from oltshell.ssh.models import SessionConfig
from oltshell.ssh.session import DeviceSession


logger = logging.getLogger(__name__)


def _resolve_password(password):
    password = password or os.environ.get("OLTSHELL_PASSWORD")
    if password is None:
        password = click.prompt("Password", hide_input=True, default="", show_default=False)
    return password


def _session_config(cfg: Config, host, vendor, username, password, port, timeout, legacy) -> SessionConfig:
    return SessionConfig(
        host=host,
        username=username,
        password=_resolve_password(password),
        vendor=vendor.lower(),
        port=port or cfg.session.port,
        timeout=timeout or cfg.session.timeout,
        legacy_mode=legacy or cfg.session.legacy_mode,
    )


def _session_options(cfg: Config) -> dict:
    """DeviceSession keyword arguments from the loaded config."""
    try:
        tables = cfg.load_vendor_tables()
    except (OSError, ValueError) as e:
        raise click.ClickException(f"vendor tables: {e}")
    return {
        "tables": tables,
        "disable_pager": cfg.session.disable_pager,
        "liveness_timeout": cfg.session.liveness_timeout,
    }


def _close_quietly(closable, host):
    try:
        closable.close()
    except SessionCloseError as e:
        logger.warning(f"{host}: Close failed: {e}")


def connection_options(func):
    """Options shared by commands that open a device session."""
    func = click.option("--legacy", is_flag=True, help="Allow ssh-rsa only firmware")(func)
    func = click.option("--timeout", type=float, default=None, help="Prompt timeout in seconds")(func)
    func = click.option("--port", type=int, default=None, help="SSH port")(func)
    func = click.option("--password", "-p", default=None, help="Password (or OLTSHELL_PASSWORD)")(func)
    func = click.option("--username", "-u", required=True, help="Login username")(func)
    func = click.option("--model", "-m", default="", help="OLT model, e.g. MA5800-X7")(func)
    func = click.option("--vendor", "-v", required=True, help="Vendor name, e.g. huawei")(func)
    return func


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default ~/.oltshell/config.yaml or OLTSHELL_CONFIG)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, debug):
    """Interactive CLI automation for multi-vendor OLTs."""
    try:
        cfg = Config.load(config_path) if config_path else get_config()
    except ValueError as e:
        raise click.ClickException(str(e))

    package_logger = logging.getLogger("oltshell")
    if package_logger.handlers:
        # Already configured by an earlier invocation in this process
        if debug:
            package_logger.setLevel(logging.DEBUG)
    else:
        level = logging.DEBUG if debug else cfg.logging.level
        configure_logging(level=level, log_file=cfg.logging.file)
    ctx.obj = cfg


@cli.command()
@click.pass_obj
def init(cfg: Config):
    """Write a default config file if none exists."""
    if cfg.config_file.exists():
        click.echo(f"Config already exists: {cfg.config_file}")
        return
    cfg.save_default_config()
    click.echo(f"Created {cfg.config_file}")


@cli.command()
def vendors():
    """List vendors with a registered driver."""
    for vendor in get_default_factory().supported_vendors():
        click.echo(vendor)


@cli.command()
@click.argument("vendor")
@click.argument("model", required=False, default="")
@click.option("--json", "as_json", is_flag=True, help="Print the full matrix as JSON")
def caps(vendor, model, as_json):
    """Show the capability matrix for VENDOR [MODEL]."""
    capabilities = get_capabilities(vendor, model)
    if as_json:
        click.echo(json.dumps(capabilities.to_dict(), indent=2))
        return

    click.echo(str(capabilities))
    predicates = [
        ("provision ONU", capabilities.can_provision_onu()),
        ("manage ONU", capabilities.can_manage_onu()),
        ("manage ports", capabilities.can_manage_ports()),
        ("manage VLAN", capabilities.can_manage_vlan()),
        ("manage profiles", capabilities.can_manage_profiles()),
        ("batch provision", capabilities.can_batch_provision()),
        ("diagnostics", capabilities.can_run_diagnostics()),
        ("read only", capabilities.is_read_only()),
    ]
    for label, value in predicates:
        click.echo(f"  {label:<16} {'yes' if value else 'no'}")
    click.echo(f"  {'ONUs per port':<16} {capabilities.max_onus_per_port}")


@cli.command()
@click.argument("inventory", required=False, type=click.Path(path_type=Path))
@click.pass_obj
def validate(cfg: Config, inventory):
    """Check that every device in INVENTORY enables its vendor's required protocols."""
    path = inventory or cfg.inventory_file
    if path is None:
        raise click.UsageError("No inventory given and none set in config")

    try:
        devices = load_inventory(path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    results = validate_inventory(devices)
    failed = 0
    for name, error in results.items():
        if error is None:
            click.echo(f"  OK    {name}")
        else:
            failed += 1
            click.echo(f"  FAIL  {name}: {error.message}")

    click.echo(f"{len(results) - failed}/{len(results)} devices valid")
    if failed:
        sys.exit(1)


@cli.command(name="exec")
@click.argument("host")
@connection_options
@click.option("--command", "-c", "commands", multiple=True, required=True, help="Command to run (repeatable)")
@click.option("--stop-on-error", is_flag=True, help="Stop at the first failing command")
@click.pass_obj
def exec_(cfg: Config, host, vendor, model, username, password, port, timeout, legacy, commands, stop_on_error):
    """Connect to HOST through the vendor driver and run commands."""
    config = _session_config(cfg, host, vendor, username, password, port, timeout, legacy)

    try:
        driver = get_default_factory().create_driver(config, model, **_session_options(cfg))
        driver.connect()
    except OltShellError as e:
        raise click.ClickException(f"{categorize_error(e).value}: {e}")

    try:
        result = run_commands(driver, commands, stop_on_error=stop_on_error)
    finally:
        _close_quietly(driver, host)

    for item in result.results:
        click.echo(f"===== {item.identifier} =====")
        if item.success:
            click.echo(item.output)
        else:
            click.echo(f"[{item.error_category.value}] {item.error}", err=True)
            if item.output:
                click.echo(item.output)

    click.echo(repr(result))
    if result.failed:
        sys.exit(1)


@cli.command()
@click.argument("host")
@connection_options
@click.pass_obj
def probe(cfg: Config, host, vendor, model, username, password, port, timeout, legacy):
    """Open a shell on HOST and check that the prompt answers."""
    config = _session_config(cfg, host, vendor, username, password, port, timeout, legacy)
    session = DeviceSession(config, **_session_options(cfg))

    try:
        session.connect()
    except OltShellError as e:
        raise click.ClickException(f"{categorize_error(e).value}: {e}")

    try:
        alive = session.is_alive()
    finally:
        _close_quietly(session, host)

    click.echo(f"{host}: {'alive' if alive else 'no response'}")
    if not alive:
        sys.exit(1)


def main():
    """Main CLI entry point."""
    return cli(prog_name="oltshell")


if __name__ == "__main__":
    sys.exit(main())
