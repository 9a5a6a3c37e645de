"""Tests for the JWT inspection helpers."""

import dataclasses

from conftest import make_id_token

from franceconnect.core.oidc.utils import DecodedToken, decode_jwt, format_token_claims, generate_token


def test_generate_token_is_hex_and_unique() -> None:
    first, second = generate_token(), generate_token()
    assert len(first) == 40
    int(first, 16)
    assert first != second


class TestDecodeJwt:
    """Tests for decode_jwt."""

    def test_decodes_header_and_payload(self) -> None:
        decoded = decode_jwt(make_id_token("N", algorithm="HS384"))

        assert decoded.is_valid_format
        assert decoded.error is None
        assert decoded.algorithm == "HS384"
        assert decoded.payload["nonce"] == "N"
        assert decoded.signature

    def test_wrong_segment_count(self) -> None:
        decoded = decode_jwt("a.b")
        assert not decoded.is_valid_format
        assert "expected 3 parts" in (decoded.error or "")

    def test_undecodable_segment(self) -> None:
        decoded = decode_jwt("!!.e30.sig")
        assert not decoded.is_valid_format
        assert decoded.algorithm is None

    def test_exposes_only_inspection_fields(self) -> None:
        fields = {f.name for f in dataclasses.fields(DecodedToken)}
        properties = {name for name, value in vars(DecodedToken).items() if isinstance(value, property)}
        assert fields == {"header", "payload", "signature", "is_valid_format", "error"}
        assert properties == {"algorithm"}


def test_format_token_claims_shows_timestamps() -> None:
    claims = dict(format_token_claims({"sub": "1", "exp": 0, "amr": ["pwd"]}))
    assert claims["sub"] == "1"
    assert claims["exp"] == "0 (1970-01-01T00:00:00+00:00)"
    assert claims["amr"] == '["pwd"]'
