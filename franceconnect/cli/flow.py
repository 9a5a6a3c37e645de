"""Flow inspection CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from franceconnect.core.config import load_config
from franceconnect.core.exceptions import ConfigurationError
from franceconnect.core.oidc.authorization import AuthorizationRequestBuilder
from franceconnect.core.oidc.jws import JWTVerifier
from franceconnect.core.oidc.utils import decode_jwt, format_token_claims
from franceconnect.core.session import MemorySessionStore, SessionState


@click.group()
def flow() -> None:
    """Inspect the FranceConnect login flow."""
    pass


@flow.command("authorize-url")
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),  # type: ignore[type-var]
    default=None,
    help="Path to config.yaml",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON for scripting",
)
def authorize_url(config_file: Path | None, output_json: bool) -> None:
    """Generate an authorization URL with fresh state and nonce.

    The callback URL must be absolute since no web request is available
    to resolve a route name.
    """
    try:
        settings = load_config(config_file).provider
        settings.validate()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from None

    request = AuthorizationRequestBuilder(settings).build(SessionState(MemorySessionStore()))

    if output_json:
        click.echo(json.dumps({"url": request.url, "state": request.state, "nonce": request.nonce}, indent=2))
        return

    click.echo(request.url)
    click.echo("")
    click.echo(f"  state: {request.state}")
    click.echo(f"  nonce: {request.nonce}")


@flow.command("verify-token")
@click.argument("token")
@click.option(
    "--secret",
    envvar="FRANCECONNECT_CLIENT_SECRET",
    required=True,
    help="Client secret the token was signed with.",
)
def verify_token(token: str, secret: str) -> None:
    """Verify an ID token signature and print its claims."""
    decoded = decode_jwt(token)
    if not decoded.is_valid_format:
        raise click.ClickException(decoded.error or "Invalid token")

    valid = JWTVerifier().verify(token, secret)
    click.echo(f"Algorithm: {decoded.algorithm}")
    click.echo(f"Signature: {'valid' if valid else 'INVALID'}")
    click.echo("Claims:")
    for name, value in format_token_claims(decoded.payload):
        click.echo(f"  {name}: {value}")

    if not valid:
        sys.exit(1)
