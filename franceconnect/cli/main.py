"""CLI entry point for the FranceConnect relying party."""

import click

from franceconnect import __version__
from franceconnect.cli import config as config_commands
from franceconnect.cli import flow as flow_commands
from franceconnect.cli import serve as serve_commands
from franceconnect.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="franceconnect")
@click.option(
    "--log-level",
    type=click.Choice(["ERROR", "INFO", "DEBUG", "TRACE"], case_sensitive=False),
    default=None,
    help="Enable protocol logging at this level.",
)
@click.option(
    "--trace-secrets",
    is_flag=True,
    help="Allow TRACE logging to include tokens and secrets.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, trace_secrets: bool) -> None:
    """FranceConnect - OpenID Connect relying-party login flow."""
    ctx.ensure_object(dict)
    if log_level:
        ctx.obj["protocol_logger"] = configure_logging(log_level, trace_enabled=trace_secrets)


cli.add_command(config_commands.config)
cli.add_command(flow_commands.flow)
cli.add_command(serve_commands.serve)
