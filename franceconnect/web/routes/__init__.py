"""Web routes for the FranceConnect relying party."""

from flask import Blueprint, Flask, url_for

from franceconnect.web.session import current_identity

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index() -> dict[str, object]:
    """Show the login status and the flow entry points."""
    identity = current_identity()
    return {
        "authenticated": identity is not None,
        "subject": identity.subject if identity else None,
        "login_url": url_for("oidc.login"),
        "logout_url": url_for("oidc.logout"),
    }


@main_bp.route("/health")
def health() -> dict[str, str]:
    """Health check endpoint (unauthenticated)."""
    return {"status": "healthy"}


def init_app(app: Flask) -> None:
    """Register blueprints with the Flask app."""
    from franceconnect.web.routes.oidc import oidc_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(oidc_bp)
