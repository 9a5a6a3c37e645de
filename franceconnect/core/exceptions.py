"""Exception hierarchy for the OIDC relying-party flow.

Subclass hierarchy::

    OIDCError
    +-- ProviderError       provider returned an error status or callback error
    +-- SecurityError       state, nonce or signature check failed
    +-- StorageError        session store read/write failed
    +-- TransportError      HTTP layer failed (timeout, DNS, invalid body)
    +-- ConfigurationError  provider settings are incomplete

Every failure aborts the current login attempt. None of them is retried.
"""

from __future__ import annotations

from typing import Any


class OIDCError(Exception):
    """Base exception for all relying-party flow errors.

    Args:
        message: Detailed description, suitable for logs.
        public_message: Message that may be shown to the end user.
    """

    public_message: str = "Authentication with the identity provider failed."

    def __init__(self, message: str, public_message: str | None = None) -> None:
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class ProviderError(OIDCError):
    """Raised when the identity provider reports an error."""

    def __init__(
        self,
        error: str,
        error_description: str = "",
        status_code: int | None = None,
        raw_response: str | None = None,
        raw_body: dict[str, Any] | None = None,
    ) -> None:
        self.error = error
        self.error_description = error_description
        self.status_code = status_code
        self.raw_response = raw_response
        self.raw_body = raw_body or {}

        message = f"FranceConnect error => {error}"
        if error_description:
            message += f": {error_description}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message, public_message=f"Identity provider error: {error}")


class SecurityError(OIDCError):
    """Raised when a security check fails.

    ``reason`` names the failed check for logging. The string form is
    deliberately generic so callers cannot learn which check failed.
    """

    public_message = "Authentication failed."

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(self.public_message)


class StorageError(OIDCError):
    """Raised when the per-session state store cannot be read or written."""


class TransportError(OIDCError):
    """Raised on network-level failures or undecodable provider responses."""


class ConfigurationError(OIDCError):
    """Raised when provider settings are missing or inconsistent."""

    public_message = "The identity provider is not configured."
