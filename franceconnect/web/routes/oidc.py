"""FranceConnect login, callback and logout routes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from flask import Blueprint, current_app, redirect, request, url_for
from werkzeug.routing import BuildError

if TYPE_CHECKING:
    from werkzeug.wrappers import Response as WerkzeugResponse

    from franceconnect.core.transport import HttpTransport

from franceconnect.core.config import ROUTE_PREFIX, ProviderSettings
from franceconnect.core.exceptions import (
    ConfigurationError,
    OIDCError,
    ProviderError,
    SecurityError,
    TransportError,
)
from franceconnect.core.oidc.flows import OidcFlowService
from franceconnect.web.session import FlaskIdentitySink, FlaskSessionStore, current_identity

logger = logging.getLogger("franceconnect.web")

oidc_bp = Blueprint("oidc", __name__, url_prefix="/oidc")


def get_settings() -> ProviderSettings:
    """Get the provider settings from the app config."""
    return cast(ProviderSettings, current_app.config["FRANCECONNECT_PROVIDER"])


def get_transport() -> HttpTransport:
    """Get the shared HTTP transport from the app extensions."""
    return cast("HttpTransport", current_app.extensions["franceconnect.transport"])


def get_flow_service() -> OidcFlowService:
    """Create a flow service bound to the current app."""
    settings = get_settings()
    settings.validate()
    return OidcFlowService(
        settings,
        get_transport(),
        sink=FlaskIdentitySink(settings.provider_keys),
    )


def resolve_url(value: str) -> str:
    """Resolve a configured URL, which may name a Flask endpoint.

    Raises:
        ConfigurationError: If the endpoint does not exist.
    """
    if not value.startswith(ROUTE_PREFIX):
        return value
    endpoint = value[len(ROUTE_PREFIX):]
    try:
        return url_for(endpoint, _external=True)
    except BuildError as e:
        raise ConfigurationError(f"Route name is invalid: {endpoint}") from e


@oidc_bp.errorhandler(OIDCError)
def handle_flow_error(error: OIDCError) -> tuple[dict[str, Any], int]:
    """Turn flow failures into JSON responses.

    Security failures only expose a generic message.
    """
    body: dict[str, Any] = {"error": error.public_message}
    if isinstance(error, SecurityError):
        status = 403
    elif isinstance(error, ProviderError):
        body["provider_error"] = error.error
        status = 400 if error.status_code is None else 502
    elif isinstance(error, TransportError):
        status = 502
    else:
        status = 500

    if isinstance(error, ConfigurationError):
        logger.error(f"Configuration error: {error}")
    body["restart_url"] = url_for("oidc.login")
    return body, status


@oidc_bp.route("/login")
def login() -> WerkzeugResponse:
    """Start a login and redirect the browser to the provider."""
    settings = get_settings()
    service = get_flow_service()
    authorization_url = service.generate_authorization_url(
        FlaskSessionStore(),
        redirect_uri=resolve_url(settings.callback_url),
    )
    return redirect(authorization_url)


@oidc_bp.route("/callback")
def callback() -> WerkzeugResponse:
    """Handle the provider callback and authenticate the session."""
    settings = get_settings()
    service = get_flow_service()
    service.handle_callback(
        request.args.to_dict(),
        FlaskSessionStore(),
        redirect_uri=resolve_url(settings.callback_url),
    )
    return redirect(url_for("oidc.me"))


@oidc_bp.route("/me")
def me() -> tuple[dict[str, Any], int]:
    """Return the claims of the authenticated user."""
    identity = current_identity()
    if identity is None:
        return {"error": "Not authenticated", "login_url": url_for("oidc.login")}, 401
    return {"claims": identity.claims, "roles": sorted(identity.roles)}, 200


@oidc_bp.route("/logout")
def logout() -> WerkzeugResponse:
    """Clear the session and redirect to the provider logout endpoint."""
    settings = get_settings()
    service = get_flow_service()
    logout_url = service.generate_logout_url(
        FlaskSessionStore(),
        post_logout_redirect_uri=resolve_url(settings.logout_url),
    )
    return redirect(logout_url)
