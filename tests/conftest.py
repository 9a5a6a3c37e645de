"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from collections.abc import Generator, Mapping
from typing import Any

import jwt
import pytest
from flask import Flask
from flask.testing import FlaskClient

from franceconnect.app import create_app
from franceconnect.core.config import AppConfig, ProviderSettings, ServerSettings
from franceconnect.core.session import MemorySessionStore
from franceconnect.core.transport import HttpResponse

CLIENT_SECRET = "test-client-secret-0123456789abcdef0123456789abcdef"


class FakeTransport:
    """HttpTransport returning queued responses and recording every call."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses: dict[tuple[str, str], list[HttpResponse]] = {}

    def queue(self, method: str, url: str, status_code: int, body: dict[str, Any] | None = None) -> None:
        raw = json.dumps(body) if body is not None else ""
        response = HttpResponse(status_code=status_code, body=body or {}, raw_body=raw)
        self._responses.setdefault((method, url), []).append(response)

    def _next(self, method: str, url: str) -> HttpResponse:
        queued = self._responses.get((method, url))
        if not queued:
            raise AssertionError(f"Unexpected {method} {url}")
        return queued.pop(0)

    def post(self, url: str, form: Mapping[str, str]) -> HttpResponse:
        self.calls.append({"method": "POST", "url": url, "form": dict(form)})
        return self._next("POST", url)

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> HttpResponse:
        self.calls.append({"method": "GET", "url": url, "headers": dict(headers or {})})
        return self._next("GET", url)


def make_id_token(
    nonce: str | None,
    secret: str = CLIENT_SECRET,
    algorithm: str = "HS256",
    **claims: Any,
) -> str:
    """Create an ID token signed with the shared client secret."""
    payload: dict[str, Any] = {"sub": "123", "iss": "https://fc.example.test", "aud": "client-123"}
    if nonce is not None:
        payload["nonce"] = nonce
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm=algorithm)


@pytest.fixture
def settings() -> ProviderSettings:
    """Provider settings for a fake FranceConnect instance."""
    return ProviderSettings(
        client_id="client-123",
        client_secret=CLIENT_SECRET,
        base_url="https://fc.example.test/api/v1",
        scopes=["openid", "given_name", "email"],
        callback_url="https://rp.example.test/oidc/callback",
        logout_url="https://rp.example.test/",
        provider_keys=["main"],
    )


@pytest.fixture
def store() -> MemorySessionStore:
    """Empty per-session store."""
    return MemorySessionStore()


@pytest.fixture
def transport() -> FakeTransport:
    """Recording transport with no queued responses."""
    return FakeTransport()


@pytest.fixture
def app(settings: ProviderSettings, transport: FakeTransport) -> Generator[Flask, None, None]:
    """Create application for testing with a fake provider transport."""
    settings.callback_url = "route:oidc.callback"
    settings.logout_url = "route:main.index"
    app_config = AppConfig(provider=settings, server=ServerSettings(secret_key="test-secret-key"))
    app = create_app({"TESTING": True, "FRANCECONNECT_TRANSPORT": transport}, app_config=app_config)
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()
