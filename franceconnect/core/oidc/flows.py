"""FranceConnect login flow orchestration.

Ties the authorization request, the callback checks, the code exchange
and the userinfo call together:

1. ``generate_authorization_url`` seeds state and nonce and returns the
   provider URL.
2. ``handle_callback`` verifies the state, exchanges the code, validates
   the ID token, fetches the profile and hands an :class:`IdentityRecord`
   to the configured sink.
3. ``generate_logout_url`` builds the provider logout URL and clears the
   whole session.

Each step receives the per-session store explicitly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlencode

from franceconnect.core.config import ProviderSettings
from franceconnect.core.exceptions import OIDCError, ProviderError
from franceconnect.core.oidc.authorization import AuthorizationRequest, AuthorizationRequestBuilder, verify_state
from franceconnect.core.oidc.client import TokenExchangeClient, UserInfoClient
from franceconnect.core.oidc.jws import JWTVerifier
from franceconnect.core.session import SessionState, StateNonceStore
from franceconnect.core.transport import HttpTransport

logger = logging.getLogger("franceconnect.oidc")

# Capability tags granted to a principal authenticated through FranceConnect
IS_FRANCE_CONNECT_AUTHENTICATED = "IS_FRANCE_CONNECT_AUTHENTICATED"
IS_AUTHENTICATED_ANONYMOUSLY = "IS_AUTHENTICATED_ANONYMOUSLY"
DEFAULT_ROLES = frozenset({IS_FRANCE_CONNECT_AUTHENTICATED, IS_AUTHENTICATED_ANONYMOUSLY})


@dataclass(frozen=True)
class IdentityRecord:
    """Validated identity handed to the host session layer."""

    claims: dict[str, Any]
    roles: frozenset[str] = field(default_factory=lambda: DEFAULT_ROLES)

    @property
    def subject(self) -> str | None:
        sub = self.claims.get("sub")
        return str(sub) if sub is not None else None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for session storage."""
        return {"claims": dict(self.claims), "roles": sorted(self.roles)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IdentityRecord:
        """Reconstruct from dictionary."""
        return cls(claims=dict(data.get("claims", {})), roles=frozenset(data.get("roles", DEFAULT_ROLES)))


class IdentitySink(Protocol):
    """Receives the identity once every check has passed."""

    def authenticate(self, record: IdentityRecord) -> None: ...


class OidcFlowService:
    """Runs the authorization code flow against one configured provider."""

    def __init__(
        self,
        settings: ProviderSettings,
        transport: HttpTransport,
        sink: IdentitySink | None = None,
        verifier: JWTVerifier | None = None,
        authorization_builder: AuthorizationRequestBuilder | None = None,
    ) -> None:
        """Initialize the flow service.

        Args:
            settings: Provider settings.
            transport: HTTP transport for the token and userinfo calls.
            sink: Receiver of the validated identity.
            verifier: ID token signature verifier.
            authorization_builder: Builder for authorization URLs.
        """
        self.settings = settings
        self.sink = sink
        self.authorization_builder = authorization_builder or AuthorizationRequestBuilder(settings)
        self.token_client = TokenExchangeClient(settings, transport, verifier)
        self.userinfo_client = UserInfoClient(settings, transport)

    def create_authorization_request(
        self,
        store: StateNonceStore,
        redirect_uri: str | None = None,
    ) -> AuthorizationRequest:
        """Start a login attempt and return the full request details."""
        return self.authorization_builder.build(SessionState(store), redirect_uri=redirect_uri)

    def generate_authorization_url(self, store: StateNonceStore, redirect_uri: str | None = None) -> str:
        """Start a login attempt and return the provider authorization URL."""
        return self.create_authorization_request(store, redirect_uri).url

    def handle_callback(
        self,
        params: Mapping[str, str],
        store: StateNonceStore,
        redirect_uri: str | None = None,
    ) -> dict[str, Any]:
        """Process the provider callback.

        Args:
            params: Callback query parameters.
            store: Session store of the user completing the login.
            redirect_uri: Resolved callback URL, defaults to the configured one.

        Returns:
            The userinfo claims merged with ``access_token``.

        Raises:
            ProviderError: The callback carried an ``error`` or a provider call failed.
            SecurityError: A state, nonce or signature check failed.
            TransportError: A provider call could not be completed.
            StorageError: The session store failed.
        """
        logger.debug("Get User Info.")
        session = SessionState(store)

        try:
            user_info = self._process_callback(params, session, redirect_uri)
        except OIDCError:
            # The attempt is over; a new one must start from a fresh state.
            session.discard_pending()
            raise

        return user_info

    def get_user_info(
        self,
        params: Mapping[str, str],
        store: StateNonceStore,
        redirect_uri: str | None = None,
    ) -> str:
        """Process the callback and return the user info serialized as JSON."""
        return json.dumps(self.handle_callback(params, store, redirect_uri))

    def _process_callback(
        self,
        params: Mapping[str, str],
        session: SessionState,
        redirect_uri: str | None,
    ) -> dict[str, Any]:
        if "error" in params:
            description = params.get("error_description", "")
            logger.error(f"{params['error']} {description}".rstrip())
            raise ProviderError(params["error"], description)

        verify_state(params.get("state"), session)

        code = params.get("code")
        if not code:
            logger.error("The authorization code is missing from the callback")
            raise ProviderError("invalid_request", "Missing authorization code")

        exchange = self.token_client.exchange_code(code, session, redirect_uri=redirect_uri)
        user_info = self.userinfo_client.fetch_user_info(exchange.access_token)
        user_info["access_token"] = exchange.access_token

        session.consume_state()

        record = IdentityRecord(claims=dict(user_info))
        if self.sink is not None:
            self.sink.authenticate(record)
        logger.info(f"FranceConnect authentication succeeded for subject {record.subject}")

        return user_info

    def generate_logout_url(self, store: StateNonceStore, post_logout_redirect_uri: str | None = None) -> str:
        """Build the provider logout URL and clear the whole session."""
        session = SessionState(store)

        logger.debug("Generate Query String.")
        params = {
            "post_logout_redirect_uri": post_logout_redirect_uri or self.settings.logout_url,
            "id_token_hint": session.id_token_hint,
        }

        logger.debug("Remove session token")
        session.clear()

        query = urlencode({k: v for k, v in params.items() if v is not None})
        return f"{self.settings.logout_endpoint}?{query}"

