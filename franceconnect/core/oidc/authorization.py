"""Authorization request construction and callback state verification.

The ``state`` value sent to the provider wraps the session token as
``token={<value>}``. On the callback the wrapper is unpacked again and
compared with the token kept in the session, which is the CSRF gate for
the whole flow.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import parse_qs, quote_plus, unquote_plus, urlencode

from franceconnect.core.config import ProviderSettings
from franceconnect.core.exceptions import SecurityError
from franceconnect.core.oidc.utils import generate_token
from franceconnect.core.session import PendingAuthState, SessionState

logger = logging.getLogger("franceconnect.oidc")


def wrap_state(token: str) -> str:
    """Wrap and percent-encode a session token for the ``state`` parameter."""
    return quote_plus(f"token={{{token}}}")


def unwrap_state(raw_state: str) -> str | None:
    """Recover the session token from a returned ``state`` parameter.

    Strips at most one ``{`` and one ``}``. Providers that drop the
    braces are tolerated.

    Returns:
        The token, or None if the parameter has no ``token`` field.
    """
    fields = parse_qs(unquote_plus(raw_state), keep_blank_values=True)
    values = fields.get("token")
    if not values:
        return None
    return values[0].replace("{", "", 1).replace("}", "", 1)


def tokens_match(received: str | None, expected: str | None) -> bool:
    """Exact comparison of two security tokens.

    An absent or empty expected value never matches.
    """
    if not expected or received is None:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def verify_state(raw_state: str | None, session: SessionState) -> None:
    """Check the callback ``state`` against the session token.

    Raises:
        SecurityError: If the state is missing, malformed or does not match.
    """
    logger.debug("Verify parameter state.")
    if not raw_state:
        logger.error("The parameter STATE is missing from the callback")
        raise SecurityError("missing state")

    token = unwrap_state(raw_state)
    if not tokens_match(token, session.state):
        logger.error("The value of the parameter STATE is not equal to the one which is expected")
        raise SecurityError("state mismatch")


@dataclass
class AuthorizationRequest:
    """A generated authorization redirect."""

    url: str
    state: str
    nonce: str
    params: dict[str, str] = field(default_factory=dict)


class AuthorizationRequestBuilder:
    """Builds the provider authorization URL and seeds state and nonce."""

    def __init__(
        self,
        settings: ProviderSettings,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self.settings = settings
        self._token_factory = token_factory

    def build(self, session: SessionState, redirect_uri: str | None = None) -> AuthorizationRequest:
        """Create a new login attempt.

        The state and nonce are written to the session before the URL is
        returned, so they exist by the time the browser is redirected.

        Args:
            session: Session of the user starting the login.
            redirect_uri: Resolved callback URL, defaults to the configured one.

        Raises:
            StorageError: If the session cannot be written.
        """
        logger.debug("Set session tokens")
        pending = PendingAuthState(state=self._token_factory(), nonce=self._token_factory())
        session.begin(pending)

        logger.debug("Generate Query String.")
        params = {
            "response_type": "code",
            "client_id": self.settings.client_id,
            "scope": " ".join(self.settings.scopes),
            "redirect_uri": redirect_uri or self.settings.callback_url,
            "nonce": pending.nonce,
            "state": wrap_state(pending.state),
        }

        return AuthorizationRequest(
            url=f"{self.settings.authorization_endpoint}?{urlencode(params)}",
            state=pending.state,
            nonce=pending.nonce,
            params=params,
        )
