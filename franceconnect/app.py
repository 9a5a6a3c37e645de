"""Flask application factory."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any

from flask import Flask

from franceconnect.core.config import AppConfig, ProviderSettings, load_config
from franceconnect.core.logging import get_protocol_logger
from franceconnect.core.transport import HttpxTransport

if TYPE_CHECKING:
    from franceconnect.core.transport import HttpTransport


def create_app(
    config: dict[str, Any] | None = None,
    app_config: AppConfig | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional Flask configuration overrides. A
            ``FRANCECONNECT_TRANSPORT`` entry replaces the HTTP transport.
        app_config: Application configuration. Loads from file/env if not provided.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    if app_config is None:
        app_config = load_config()

    app.config.from_mapping(
        SECRET_KEY=app_config.server.secret_key or secrets.token_hex(32),
        FRANCECONNECT_PROVIDER=app_config.provider,
    )

    if config:
        app.config.from_mapping(config)

    transport: HttpTransport | None = app.config.pop("FRANCECONNECT_TRANSPORT", None)
    if transport is None:
        provider: ProviderSettings = app.config["FRANCECONNECT_PROVIDER"]
        transport = HttpxTransport(
            proxy_host=provider.proxy_host,
            proxy_port=provider.proxy_port,
            timeout=provider.timeout,
            protocol_logger=get_protocol_logger(),
        )
    app.extensions["franceconnect.transport"] = transport

    from franceconnect.web import routes

    routes.init_app(app)

    return app


def run_server(
    app_config: AppConfig | None = None,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the Flask development server.

    Args:
        app_config: Application configuration. Loads from file/env if not provided.
        host: Override host from config.
        port: Override port from config.
    """
    if app_config is None:
        app_config = load_config()

    server_host = host or app_config.server.host
    server_port = port or app_config.server.port

    app = create_app(app_config=app_config)
    app.debug = app_config.server.debug

    print("Starting FranceConnect relying party...")
    print(f"  URL: http://{server_host}:{server_port}")
    print(f"  Provider: {app_config.provider.base_url or '(not configured)'}")
    print("")

    app.run(host=server_host, port=server_port)
