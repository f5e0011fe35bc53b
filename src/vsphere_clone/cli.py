#!/usr/bin/env python3
"""
Command-line interface for vSphere clone operations.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

from .client import VSphereCloneClient
from .config import DEFAULT_CONFIG_PATHS, AppConfig, config_loader, default_vm_name, load_options_file
from .exceptions import ConfigurationError, VSphereCloneError
from .logging import logger
from .models import BootstrapOptions
from .relocation import disk_move_mode_for
from .validation import OptionValidator


def setup_logging(verbose: bool = False, quiet: bool = False, log_level: str = "INFO") -> None:
    """Setup logging configuration."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    logger.set_level(level)


def load_config(config_path: Optional[str]) -> AppConfig:
    """Load configuration, falling back to defaults on error."""
    try:
        return config_loader.load_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Warning: {e}", err=True)
        return AppConfig()


class EchoProgressSink:
    """Prints progress messages unless the CLI runs quietly."""

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def report(self, message: str) -> None:
        if not self.quiet:
            click.echo(f"  {message}")


def emit(data: Dict[str, Any], output_format: str) -> None:
    """Print ``data`` in the selected output format."""
    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    elif output_format == "yaml":
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        _emit_text(data)


def _emit_text(data: Dict[str, Any], indent: int = 0) -> None:
    pad = "  " * indent
    for key, value in data.items():
        if isinstance(value, dict):
            click.echo(f"{pad}{key}:")
            _emit_text(value, indent + 1)
        else:
            click.echo(f"{pad}{key}: {value}")


def _read_options(options_file: Optional[str]) -> Dict[str, Any]:
    return load_options_file(options_file) if options_file else {}


@click.group()
@click.option("--config", "-c", default=None, help="Configuration file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json", "yaml"]),
    default="text",
    help="Output format",
)
@click.version_option(package_name="vsphere-clone")
@click.pass_context
def cli(ctx: Any, config: Optional[str], verbose: bool, quiet: bool, output: str) -> None:
    """Build and submit vSphere clone requests."""
    app_config = load_config(config)
    setup_logging(verbose, quiet, app_config.log_level)

    ctx.ensure_object(dict)
    ctx.obj["config"] = app_config
    ctx.obj["output_format"] = output
    ctx.obj["quiet"] = quiet


@cli.command()
@click.argument("template")
@click.option("--name", "-n", help="Name of the VM to create")
@click.option("--prefix", default="vm", show_default=True, help="Prefix for a generated name")
@click.option("--options", "options_file", type=click.Path(exists=True), help="YAML bootstrap options")
@click.option(
    "--prepare-linked-clone",
    is_flag=True,
    help="Create delta disks on a non-template source, as clone would",
)
@click.pass_context
def plan(
    ctx: Any,
    template: str,
    name: Optional[str],
    prefix: str,
    options_file: Optional[str],
    prepare_linked_clone: bool,
) -> None:
    """Build a clone request and print it without cloning.

    The source VM is left untouched unless --prepare-linked-clone is given.
    ``clone_disk_move_mode`` shows the mode a real clone would use.
    """
    vm_name = name or default_vm_name(prefix)
    try:
        options = _read_options(options_file)
        config: AppConfig = ctx.obj["config"]
        use_linked_clone = BootstrapOptions.from_mapping(
            config.merged_bootstrap_options(options)
        ).use_linked_clone
        if not prepare_linked_clone:
            options = dict(options, use_linked_clone=False)

        progress = EchoProgressSink(ctx.obj["quiet"])
        with VSphereCloneClient(config, progress=progress) as client:
            source, request = client.build_clone_request(template, vm_name, options)
        summary = {"vm_name": vm_name, "template": template}
        summary.update(request.summary())
        summary["clone_disk_move_mode"] = disk_move_mode_for(source, use_linked_clone).value
        emit(summary, ctx.obj["output_format"])
    except VSphereCloneError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("template")
@click.option("--name", "-n", help="Name of the VM to create")
@click.option("--prefix", default="vm", show_default=True, help="Prefix for a generated name")
@click.option("--options", "options_file", type=click.Path(exists=True), help="YAML bootstrap options")
@click.pass_context
def clone(
    ctx: Any, template: str, name: Optional[str], prefix: str, options_file: Optional[str]
) -> None:
    """Clone TEMPLATE into a new, powered-off VM."""
    vm_name = name or default_vm_name(prefix)
    quiet = ctx.obj["quiet"]
    try:
        options = _read_options(options_file)
        if not quiet:
            click.echo(f"Cloning '{template}' to '{vm_name}'...")
        with VSphereCloneClient(ctx.obj["config"], progress=EchoProgressSink(quiet)) as client:
            client.clone(template, vm_name, options)
        if not quiet:
            click.echo(f"✓ Created VM '{vm_name}'")
    except VSphereCloneError as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)


@cli.command("check-hostname")
@click.argument("hostname")
def check_hostname(hostname: str) -> None:
    """Check HOSTNAME against the guest hostname rule."""
    try:
        OptionValidator.validate_hostname(hostname)
    except VSphereCloneError as e:
        click.echo(f"✗ {hostname}: {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ {hostname}")


@cli.group()
def config() -> None:
    """Manage configuration settings."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: Any) -> None:
    """Display current configuration."""
    data = ctx.obj["config"].model_dump()
    if data.get("vcenter_password"):
        data["vcenter_password"] = "***"
    click.echo(yaml.safe_dump(data, default_flow_style=False))


@config.command("init")
@click.option("--config-dir", default="~/.config/vsphere-clone", help="Configuration directory")
def config_init(config_dir: str) -> None:
    """Initialize default configuration."""
    config_path = Path(config_dir).expanduser()
    config_path.mkdir(parents=True, exist_ok=True)

    config_file = config_path / "config.yaml"
    if config_file.exists():
        click.echo(f"Configuration already exists at {config_file}", err=True)
        sys.exit(1)

    default_config = AppConfig().model_dump()
    with open(config_file, "w") as f:
        yaml.safe_dump(default_config, f, default_flow_style=False)

    click.echo(f"Configuration initialized at {config_file}")


@config.command("path")
def config_path() -> None:
    """Show the configuration file search path."""
    paths = [os.path.expanduser(p) for p in DEFAULT_CONFIG_PATHS]

    click.echo("Configuration search paths (in order):")
    for i, path in enumerate(paths, 1):
        exists = "✓" if os.path.exists(path) else "✗"
        click.echo(f"  {i}. {exists} {path}")

    for path in paths:
        if os.path.exists(path):
            click.echo(f"\nCurrently using: {path}")
            return

    click.echo("\nNo configuration file found. Run 'vsphere-clone config init' to create one.")


if __name__ == "__main__":
    cli()
