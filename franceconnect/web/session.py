"""Flask session adapters for the flow.

``FlaskSessionStore`` keeps pending state, nonce and ID token hint in the
signed Flask session cookie. ``FlaskIdentitySink`` records the validated
identity in the same session.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from flask import session

from franceconnect.core.oidc.flows import IdentityRecord

logger = logging.getLogger("franceconnect.web")

# Session key for the authenticated identity
IDENTITY_KEY = "franceconnect_identity"

# Prefix of per-provider-key principal entries
SECURITY_KEY_PREFIX = "_security_"

# Claims kept out of the cookie-backed session
SESSION_EXCLUDED_CLAIMS = frozenset({"access_token"})


class FlaskSessionStore:
    """StateNonceStore over ``flask.session``."""

    def set(self, key: str, value: str) -> None:
        session[key] = value

    def get(self, key: str) -> str | None:
        value = session.get(key)
        return str(value) if value is not None else None

    def remove(self, key: str) -> None:
        session.pop(key, None)

    def clear(self) -> None:
        session.clear()


class FlaskIdentitySink:
    """Adopts the validated identity as the session principal.

    The access token never reaches the session cookie. Each provider key
    only gets the subject and roles, the claims live under ``IDENTITY_KEY``.
    """

    def __init__(self, provider_keys: Iterable[str] = ()) -> None:
        self.provider_keys = list(provider_keys)

    def authenticate(self, record: IdentityRecord) -> None:
        claims = {k: v for k, v in record.claims.items() if k not in SESSION_EXCLUDED_CLAIMS}
        session[IDENTITY_KEY] = IdentityRecord(claims=claims, roles=record.roles).to_dict()
        principal = json.dumps({"sub": record.subject, "roles": sorted(record.roles)})
        for key in self.provider_keys:
            session[f"{SECURITY_KEY_PREFIX}{key}"] = principal
        session.modified = True
        logger.debug(f"Stored identity for {len(self.provider_keys)} provider key(s)")


def current_identity() -> IdentityRecord | None:
    """Get the identity of the current session, if authenticated."""
    data = session.get(IDENTITY_KEY)
    if not data:
        return None
    return IdentityRecord.from_dict(data)
