"""Token endpoint and userinfo endpoint clients.

Provider responses are decoded once, at this boundary, into either a
success type or an :class:`ErrorResponse`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from franceconnect.core.config import ProviderSettings
from franceconnect.core.exceptions import ProviderError, SecurityError
from franceconnect.core.oidc.authorization import tokens_match
from franceconnect.core.oidc.jws import JWTVerifier, MalformedTokenError, SignedToken
from franceconnect.core.session import SessionState
from franceconnect.core.transport import HttpResponse, HttpTransport

logger = logging.getLogger("franceconnect.oidc")


@dataclass(frozen=True)
class ErrorResponse:
    """A non-success answer from the provider."""

    status_code: int
    error: str
    error_description: str = ""
    raw_body: str = ""
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_http(cls, response: HttpResponse, default_error: str) -> ErrorResponse:
        body = response.body
        return cls(
            status_code=response.status_code,
            error=str(body.get("error") or default_error),
            error_description=str(body.get("error_description") or ""),
            raw_body=response.raw_body,
            body=body,
        )

    def to_exception(self) -> ProviderError:
        return ProviderError(
            self.error,
            self.error_description,
            status_code=self.status_code,
            raw_response=self.raw_body,
            raw_body=self.body,
        )


@dataclass(frozen=True)
class TokenResponse:
    """A successful token endpoint answer."""

    access_token: str
    id_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    scope: str | None = None

    @classmethod
    def from_http(cls, response: HttpResponse) -> TokenResponse | ErrorResponse:
        if not response.is_ok:
            return ErrorResponse.from_http(response, "token_error")

        body = response.body
        access_token = body.get("access_token")
        id_token = body.get("id_token")
        if not isinstance(access_token, str) or not access_token:
            return ErrorResponse(response.status_code, "invalid_response", "access_token missing", response.raw_body, body)
        if not isinstance(id_token, str) or not id_token:
            return ErrorResponse(response.status_code, "invalid_response", "id_token missing", response.raw_body, body)

        return cls(
            access_token=access_token,
            id_token=id_token,
            token_type=body.get("token_type", "Bearer"),
            expires_in=body.get("expires_in"),
            scope=body.get("scope"),
        )


@dataclass(frozen=True)
class UserInfoResponse:
    """A successful userinfo endpoint answer."""

    claims: dict[str, Any]

    @classmethod
    def from_http(cls, response: HttpResponse) -> UserInfoResponse | ErrorResponse:
        if not response.is_ok:
            return ErrorResponse.from_http(response, "userinfo_error")
        return cls(claims=dict(response.body))


@dataclass(frozen=True)
class TokenExchangeResult:
    """Outcome of a validated code exchange."""

    access_token: str
    id_token_claims: dict[str, Any]


class TokenExchangeClient:
    """Exchanges an authorization code and validates the returned ID token."""

    def __init__(
        self,
        settings: ProviderSettings,
        transport: HttpTransport,
        verifier: JWTVerifier | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.verifier = verifier or JWTVerifier()

    def exchange_code(
        self,
        code: str,
        session: SessionState,
        redirect_uri: str | None = None,
    ) -> TokenExchangeResult:
        """Exchange ``code`` for tokens.

        Must only be called once the callback state has been verified.
        The nonce is checked first, then the signature; both must pass
        before any claim is returned.

        Raises:
            ProviderError: The token endpoint answered with an error.
            SecurityError: Nonce mismatch, malformed or badly signed ID token.
            TransportError: The token endpoint could not be reached.
        """
        logger.debug("Get Access Token.")
        form = {
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri or self.settings.callback_url,
            "client_id": self.settings.client_id,
            "client_secret": self.settings.client_secret,
            "code": code,
        }

        logger.debug("POST Data to FranceConnect.")
        result = TokenResponse.from_http(self.transport.post(self.settings.token_endpoint, form))
        if isinstance(result, ErrorResponse):
            logger.error(f"Token request failed: {result.error} {result.error_description}".rstrip())
            raise result.to_exception()

        session.remember_id_token(result.id_token)

        try:
            id_token = SignedToken.parse(result.id_token)
        except MalformedTokenError as e:
            logger.error(f"The ID token could not be decoded: {e}")
            raise SecurityError("malformed id_token") from e

        nonce = id_token.payload.get("nonce")
        if not isinstance(nonce, str) or not tokens_match(nonce, session.nonce):
            logger.error("The value of the parameter NONCE is not equal to the one which is expected")
            raise SecurityError("nonce mismatch")

        logger.debug("Check JWT signature.")
        if not self.verifier.verify(id_token, self.settings.client_secret):
            logger.error("The signature of the JWT is not valid.")
            raise SecurityError("invalid signature")

        session.consume_nonce()

        return TokenExchangeResult(access_token=result.access_token, id_token_claims=id_token.payload)


class UserInfoClient:
    """Fetches the profile of the authenticated user."""

    def __init__(self, settings: ProviderSettings, transport: HttpTransport) -> None:
        self.settings = settings
        self.transport = transport

    def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        """GET the userinfo endpoint with a bearer token.

        Raises:
            ProviderError: The endpoint answered with a non-200 status.
            TransportError: The endpoint could not be reached.
        """
        logger.debug("Get Infos.")
        response = self.transport.get(
            self.settings.userinfo_endpoint,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        result = UserInfoResponse.from_http(response)
        if isinstance(result, ErrorResponse):
            logger.error(f"Userinfo request failed: {result.error}")
            raise result.to_exception()
        return result.claims
