"""FranceConnect OpenID Connect relying-party flow."""

from franceconnect.core.oidc.authorization import (
    AuthorizationRequest,
    AuthorizationRequestBuilder,
    unwrap_state,
    verify_state,
    wrap_state,
)
from franceconnect.core.oidc.client import (
    ErrorResponse,
    TokenExchangeClient,
    TokenExchangeResult,
    TokenResponse,
    UserInfoClient,
    UserInfoResponse,
)
from franceconnect.core.oidc.flows import (
    DEFAULT_ROLES,
    IS_AUTHENTICATED_ANONYMOUSLY,
    IS_FRANCE_CONNECT_AUTHENTICATED,
    IdentityRecord,
    IdentitySink,
    OidcFlowService,
)
from franceconnect.core.oidc.jws import JWTVerifier, MalformedTokenError, SignedToken
from franceconnect.core.oidc.utils import DecodedToken, decode_jwt, format_token_claims, generate_token

__all__ = [
    # Authorization
    "AuthorizationRequest",
    "AuthorizationRequestBuilder",
    "unwrap_state",
    "verify_state",
    "wrap_state",
    # Clients
    "ErrorResponse",
    "TokenExchangeClient",
    "TokenExchangeResult",
    "TokenResponse",
    "UserInfoClient",
    "UserInfoResponse",
    # Flows
    "DEFAULT_ROLES",
    "IS_AUTHENTICATED_ANONYMOUSLY",
    "IS_FRANCE_CONNECT_AUTHENTICATED",
    "IdentityRecord",
    "IdentitySink",
    "OidcFlowService",
    # Tokens
    "DecodedToken",
    "JWTVerifier",
    "MalformedTokenError",
    "SignedToken",
    "decode_jwt",
    "format_token_claims",
    "generate_token",
]
