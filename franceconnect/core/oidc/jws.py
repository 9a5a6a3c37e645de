"""Signature verification for compact-serialized identity tokens.

ID tokens issued to this client are signed with the shared client
secret, so only the HMAC algorithms are accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jwt.algorithms import HMACAlgorithm
from jwt.exceptions import InvalidKeyError
from jwt.utils import base64url_decode

from franceconnect.core.oidc.utils import SEGMENT_DELIMITER, decode_segment

logger = logging.getLogger("franceconnect.oidc")

HMAC_ALGORITHMS = {
    "HS256": HMACAlgorithm.SHA256,
    "HS384": HMACAlgorithm.SHA384,
    "HS512": HMACAlgorithm.SHA512,
}


class MalformedTokenError(ValueError):
    """Raised when a token cannot be split or decoded."""


@dataclass(frozen=True)
class SignedToken:
    """A compact JWS split into its parts.

    ``signing_input`` is the raw ``header.payload`` text exactly as
    received; it is never re-encoded before the signature is checked.
    """

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes
    signing_input: bytes

    @property
    def algorithm(self) -> str | None:
        alg = self.header.get("alg")
        return alg if isinstance(alg, str) else None

    @classmethod
    def parse(cls, token: str) -> SignedToken:
        """Split and decode a compact token.

        Raises:
            MalformedTokenError: On wrong segment count or undecodable segments.
        """
        parts = token.split(SEGMENT_DELIMITER)
        if len(parts) != 3:
            raise MalformedTokenError(f"Expected 3 segments, got {len(parts)}")

        header_b64, payload_b64, signature_b64 = parts
        try:
            header = decode_segment(header_b64)
            payload = decode_segment(payload_b64)
            signature = base64url_decode(signature_b64.encode("ascii"))
        except (UnicodeError, ValueError) as e:
            raise MalformedTokenError(str(e)) from e

        return cls(
            header=header,
            payload=payload,
            signature=signature,
            signing_input=f"{header_b64}.{payload_b64}".encode("ascii"),
        )


class JWTVerifier:
    """Verifies HMAC-signed tokens against a shared secret."""

    def __init__(self, algorithms: dict[str, Any] | None = None) -> None:
        self._algorithms = {
            name: HMACAlgorithm(hash_alg)
            for name, hash_alg in (algorithms or HMAC_ALGORITHMS).items()
        }

    @property
    def supported_algorithms(self) -> list[str]:
        return sorted(self._algorithms)

    def verify(self, token: str | SignedToken, secret: str | bytes) -> bool:
        """Check the token signature.

        Malformed tokens, unsupported algorithms (including ``none``) and
        unusable keys all count as a failed verification.

        Args:
            token: Compact token string or an already parsed SignedToken.
            secret: Shared secret the token was signed with.

        Returns:
            True only if the signature matches.
        """
        if isinstance(token, str):
            try:
                token = SignedToken.parse(token)
            except MalformedTokenError as e:
                logger.debug(f"Rejecting malformed token: {e}")
                return False

        algorithm = self._algorithms.get(token.algorithm or "")
        if algorithm is None:
            logger.debug(f"Rejecting token signed with unsupported algorithm: {token.algorithm!r}")
            return False

        if not secret:
            return False

        try:
            key = algorithm.prepare_key(secret)
        except InvalidKeyError as e:
            logger.debug(f"Rejecting unusable verification key: {e}")
            return False

        # HMACAlgorithm.verify compares digests with hmac.compare_digest
        return bool(algorithm.verify(token.signing_input, key, token.signature))
