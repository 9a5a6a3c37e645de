"""OIDC utility functions.

Provides random token generation and helpers for decoding and
inspecting JWT tokens such as the ID token.
"""

from __future__ import annotations

import json
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from jwt.utils import base64url_decode

# Separator between the segments of a compact JWS
SEGMENT_DELIMITER = "."


def generate_token(num_bytes: int = 20) -> str:
    """Generate an unpredictable hex token for state and nonce values."""
    return secrets.token_hex(num_bytes)


@dataclass
class DecodedToken:
    """Represents a decoded JWT token."""

    header: dict[str, Any] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)
    signature: str = ""

    is_valid_format: bool = True
    error: str | None = None

    @property
    def algorithm(self) -> str | None:
        """Get the signing algorithm from the header."""
        return self.header.get("alg")


def decode_segment(segment: str) -> dict[str, Any]:
    """Decode one base64url-encoded JSON segment.

    Raises:
        ValueError: If the segment is not base64url or not a JSON object.
    """
    try:
        raw = base64url_decode(segment.encode("ascii"))
        result = json.loads(raw)
    except (UnicodeError, ValueError, TypeError) as e:
        raise ValueError(f"Invalid token segment: {e}") from e
    if not isinstance(result, dict):
        raise ValueError("Token segment is not a JSON object")
    return result


def decode_jwt(token: str) -> DecodedToken:
    """Decode a JWT token without verification.

    This decodes the token for inspection purposes only.
    It does NOT verify the signature.

    Args:
        token: JWT token string.

    Returns:
        DecodedToken with header and payload.
    """
    parts = token.split(SEGMENT_DELIMITER)
    if len(parts) != 3:
        return DecodedToken(
            is_valid_format=False,
            error=f"Invalid JWT format: expected 3 parts, got {len(parts)}",
        )

    try:
        header = decode_segment(parts[0])
        payload = decode_segment(parts[1])
    except ValueError as e:
        return DecodedToken(is_valid_format=False, error=f"Failed to decode JWT: {e}")

    return DecodedToken(header=header, payload=payload, signature=parts[2])


def format_token_claims(payload: dict[str, Any]) -> list[tuple[str, str]]:
    """Format token claims for display.

    Timestamps are shown alongside their ISO form.
    """
    claims = []
    for key, value in payload.items():
        if key in ("exp", "iat", "nbf", "auth_time") and isinstance(value, (int, float)):
            formatted = f"{value} ({datetime.fromtimestamp(value, tz=UTC).isoformat()})"
        elif isinstance(value, (dict, list)):
            formatted = json.dumps(value)
        else:
            formatted = str(value)
        claims.append((key, formatted))
    return claims
