"""HTTP transport used to talk to the identity provider.

The flow only needs two verbs: a form-encoded POST (token endpoint) and a
GET with extra headers (userinfo endpoint). Both return the status code
and the decoded JSON body.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from franceconnect.core.exceptions import TransportError
from franceconnect.core.logging import LoggingClient, ProtocolLogger


@dataclass
class HttpResponse:
    """Status code plus decoded body of a provider response."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)
    raw_body: str = ""

    @property
    def is_ok(self) -> bool:
        return self.status_code == 200


class HttpTransport(Protocol):
    """Blocking HTTP client interface consumed by the flow."""

    def post(self, url: str, form: Mapping[str, str]) -> HttpResponse: ...

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> HttpResponse: ...


def build_proxy_url(host: str | None, port: int | None) -> str | None:
    """Build an HTTP proxy URL from a host and optional port."""
    if not host:
        return None
    if "://" not in host:
        host = f"http://{host}"
    return f"{host}:{port}" if port else host


class HttpxTransport:
    """HttpTransport backed by :class:`LoggingClient`.

    The proxy is configured once, when the underlying client is created.
    """

    def __init__(
        self,
        proxy_host: str | None = None,
        proxy_port: int | None = None,
        timeout: float = 30.0,
        protocol_logger: ProtocolLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            proxy_host: Optional HTTP proxy host.
            proxy_port: Optional HTTP proxy port.
            timeout: Request timeout in seconds.
            protocol_logger: Protocol logger for HTTP traffic capture.
            transport: Optional httpx transport (used by tests).
        """
        self.proxy_url = build_proxy_url(proxy_host, proxy_port)
        self.timeout = timeout
        self._protocol_logger = protocol_logger
        self._transport = transport
        self._http_client: LoggingClient | None = None
        # One instance is shared by all request threads of the web app
        self._client_lock = threading.Lock()

    @property
    def http_client(self) -> LoggingClient:
        """Get or create the HTTP client."""
        with self._client_lock:
            if self._http_client is None:
                kwargs: dict[str, Any] = {"timeout": self.timeout}
                if self._transport is not None:
                    kwargs["transport"] = self._transport
                elif self.proxy_url:
                    kwargs["proxy"] = self.proxy_url
                self._http_client = LoggingClient(protocol_logger=self._protocol_logger, **kwargs)
            return self._http_client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._client_lock:
            if self._http_client is not None:
                self._http_client.close()
                self._http_client = None

    def post(self, url: str, form: Mapping[str, str]) -> HttpResponse:
        return self._send(
            "POST",
            url,
            data=dict(form),
            headers={"Accept": "application/json"},
        )

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> HttpResponse:
        request_headers = {"Accept": "application/json"}
        request_headers.update(headers or {})
        return self._send("GET", url, headers=request_headers)

    def _send(self, method: str, url: str, **kwargs: Any) -> HttpResponse:
        try:
            response = self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error during {method} {url}: {e}") from e

        return decode_response(response.status_code, response.text)


def decode_response(status_code: int, text: str) -> HttpResponse:
    """Decode a JSON response body.

    Error responses with an undecodable body keep an empty ``body`` so the
    caller can still report the status. A successful response must carry
    a JSON object.
    """
    body: dict[str, Any] = {}
    if text:
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            body = decoded
        elif status_code == 200:
            raise TransportError(f"Provider returned a non-JSON-object body (HTTP {status_code})")
    elif status_code == 200:
        raise TransportError("Provider returned an empty body")

    return HttpResponse(status_code=status_code, body=body, raw_body=text)
