"""Configuration management CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import click
import yaml

from franceconnect.core.config import DEFAULT_CONFIG_FILE, get_default_config_yaml, load_config
from franceconnect.core.exceptions import ConfigurationError

config_file_option = click.option(
    "--path",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help=f"Config file path (default: {DEFAULT_CONFIG_FILE})",
)


@click.group()
def config() -> None:
    """Manage FranceConnect configuration."""
    pass


@config.command("init")
@config_file_option
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing config file.",
)
def config_init(config_path: Path | None, force: bool) -> None:
    """Write an annotated example config.yaml.

    Examples:

        franceconnect config init
        franceconnect config init --path ./config.yaml --force
    """
    path = config_path or DEFAULT_CONFIG_FILE
    if path.exists() and not force:
        click.echo(f"Config file already exists: {path}")
        click.echo("Use --force to overwrite it.")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_default_config_yaml())
    path.chmod(0o600)
    click.echo(f"Config file written to: {path}")


@config.command("show")
@config_file_option
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)
def config_show(config_path: Path | None, output_json: bool) -> None:
    """Show the effective configuration (client secret masked)."""
    try:
        app_config = load_config(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from None

    data = app_config.to_dict(mask_secret=True)
    if output_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())

    try:
        app_config.provider.validate()
    except ConfigurationError as e:
        click.echo("")
        click.echo(f"WARNING: {e}")
