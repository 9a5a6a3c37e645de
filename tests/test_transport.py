"""Tests for the httpx-backed transport."""

import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from franceconnect.core.exceptions import TransportError
from franceconnect.core.logging import LoggingClient, ProtocolLogger
from franceconnect.core.transport import HttpxTransport, build_proxy_url, decode_response


class TestHttpxTransport:
    """Tests for HttpxTransport with a mock httpx transport."""

    def test_post_sends_form_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "AT"})

        transport = HttpxTransport(transport=httpx.MockTransport(handler), protocol_logger=ProtocolLogger())
        response = transport.post("https://fc.example.test/token", {"code": "C", "grant_type": "authorization_code"})

        assert response.status_code == 200
        assert response.body == {"access_token": "AT"}
        assert seen[0].method == "POST"
        assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
        assert seen[0].content == b"code=C&grant_type=authorization_code"

    def test_get_sends_headers(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["authorization"] == "Bearer AT"
            assert request.url.params["schema"] == "openid"
            return httpx.Response(200, json={"sub": "1"})

        transport = HttpxTransport(transport=httpx.MockTransport(handler), protocol_logger=ProtocolLogger())
        response = transport.get("https://fc.example.test/userinfo?schema=openid", {"Authorization": "Bearer AT"})

        assert response.body == {"sub": "1"}

    def test_error_status_is_returned(self) -> None:
        transport = HttpxTransport(
            transport=httpx.MockTransport(lambda r: httpx.Response(400, json={"error": "invalid_grant"})),
            protocol_logger=ProtocolLogger(),
        )
        response = transport.post("https://fc.example.test/token", {})
        assert response.status_code == 400
        assert response.body["error"] == "invalid_grant"
        assert not response.is_ok

    def test_network_failure_raises_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        protocol_logger = ProtocolLogger()
        transport = HttpxTransport(transport=httpx.MockTransport(handler), protocol_logger=protocol_logger)

        with pytest.raises(TransportError):
            transport.post("https://fc.example.test/token", {"code": "C"})
        assert protocol_logger.exchanges[0].error

    def test_exchanges_are_logged(self) -> None:
        protocol_logger = ProtocolLogger()
        transport = HttpxTransport(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"sub": "1"})),
            protocol_logger=protocol_logger,
        )
        transport.get("https://fc.example.test/userinfo", {"Authorization": "Bearer AT"})

        exchange = protocol_logger.exchanges[0]
        assert exchange.method == "GET"
        assert exchange.response_status == 200
        assert "[REDACTED]" in exchange.to_dict()["request_headers"]["authorization"]

    def test_close_resets_client(self) -> None:
        transport = HttpxTransport(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        client = transport.http_client
        transport.close()
        assert transport.http_client is not client

    def test_concurrent_first_use_builds_one_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        built: list[object] = []
        original_init = LoggingClient.__init__

        def slow_init(self: LoggingClient, *args: object, **kwargs: object) -> None:
            built.append(self)
            time.sleep(0.05)
            original_init(self, *args, **kwargs)  # type: ignore[arg-type]

        monkeypatch.setattr(LoggingClient, "__init__", slow_init)
        transport = HttpxTransport(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))

        with ThreadPoolExecutor(max_workers=8) as pool:
            clients = list(pool.map(lambda _: transport.http_client, range(8)))

        assert len(built) == 1
        assert all(c is clients[0] for c in clients)
        transport.close()


class TestDecodeResponse:
    """Tests for decode_response."""

    def test_non_json_error_body_kept_raw(self) -> None:
        response = decode_response(502, "<html>Bad gateway</html>")
        assert response.body == {}
        assert response.raw_body == "<html>Bad gateway</html>"

    def test_non_json_success_body_raises(self) -> None:
        with pytest.raises(TransportError):
            decode_response(200, "<html>ok</html>")

    def test_json_array_success_body_raises(self) -> None:
        with pytest.raises(TransportError):
            decode_response(200, "[1, 2]")

    def test_empty_success_body_raises(self) -> None:
        with pytest.raises(TransportError):
            decode_response(200, "")


class TestProxyUrl:
    """Tests for build_proxy_url."""

    def test_no_proxy(self) -> None:
        assert build_proxy_url(None, 3128) is None

    def test_host_and_port(self) -> None:
        assert build_proxy_url("proxy.example.org", 3128) == "http://proxy.example.org:3128"

    def test_host_with_scheme(self) -> None:
        assert build_proxy_url("https://proxy.example.org", None) == "https://proxy.example.org"

    def test_transport_keeps_proxy_url(self) -> None:
        transport = HttpxTransport(proxy_host="proxy.example.org", proxy_port=8080)
        assert transport.proxy_url == "http://proxy.example.org:8080"
