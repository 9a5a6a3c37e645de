"""Server CLI commands."""

from pathlib import Path

import click


@click.command()
@click.option(
    "--host",
    "-h",
    default=None,
    help="Host to bind to (default: from config or 127.0.0.1)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (default: from config or 8000)",
)
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode",
)
def serve(host: str | None, port: int | None, config_file: Path | None, debug: bool) -> None:
    """Start the relying-party web server.

    Examples:

        # Start with ~/.franceconnect/config.yaml
        franceconnect serve

        # Start on custom port
        franceconnect serve --port 9000
    """
    from franceconnect.app import run_server
    from franceconnect.core.config import load_config
    from franceconnect.core.exceptions import ConfigurationError

    try:
        config = load_config(config_file)
        config.provider.validate()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from None

    if debug:
        config.server.debug = True

    run_server(app_config=config, host=host, port=port)
