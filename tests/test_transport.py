from __future__ import annotations

import base64

import allure
import httpx
import pytest

from spooldir.http.transport import HttpTransport
from spooldir.queue.errors import TransportError

pytestmark = [
    allure.epic("Job Queue"),
    allure.feature("HTTP Transport"),
]


def _transport(handler) -> HttpTransport:
    return HttpTransport(transport=httpx.MockTransport(handler))


def test_send_posts_payload_with_basic_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"<reply/>")

    with _transport(handler) as transport:
        body = transport.send("http://host/svc", "user:pass", "<envelope/>")

    assert body == b"<reply/>"
    [request] = seen
    assert request.method == "POST"
    assert request.content == b"<envelope/>"
    assert request.headers["content-type"] == "text/xml; charset=utf-8"
    scheme, _, token = request.headers["authorization"].partition(" ")
    assert scheme == "Basic"
    assert base64.b64decode(token).decode("utf-8") == "user:pass"


def test_send_without_credentials_omits_authorization() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    with _transport(handler) as transport:
        transport.send("http://host/svc", None, "payload")

    assert "authorization" not in seen[0].headers


def test_secret_with_semicolons_and_non_ascii_is_utf8_encoded() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    with _transport(handler) as transport:
        transport.send("http://host/svc", "joão:se;nha", "payload")

    token = seen[0].headers["authorization"].removeprefix("Basic ")
    assert base64.b64decode(token).decode("utf-8") == "joão:se;nha"


def test_error_status_raises_transport_error() -> None:
    with _transport(lambda request: httpx.Response(503, content=b"busy")) as transport:
        with pytest.raises(TransportError) as excinfo:
            transport.send("http://host/svc", None, "payload")

    assert excinfo.value.status_code == 503


def test_server_error_with_fault_body_is_returned() -> None:
    fault = b"<soap:Fault><faultstring>boom</faultstring></soap:Fault>"

    with _transport(lambda request: httpx.Response(500, content=fault)) as transport:
        body = transport.send("http://host/svc", None, "payload")

    assert body == fault


def test_server_error_without_body_raises_transport_error() -> None:
    with _transport(lambda request: httpx.Response(500)) as transport:
        with pytest.raises(TransportError) as excinfo:
            transport.send("http://host/svc", None, "payload")

    assert excinfo.value.status_code == 500


def test_fault_body_rejected_when_fault_responses_disabled() -> None:
    transport = HttpTransport(
        accept_fault_responses=False,
        transport=httpx.MockTransport(lambda request: httpx.Response(500, content=b"<Fault/>")),
    )

    with transport, pytest.raises(TransportError, match="HTTP 500"):
        transport.send("http://host/svc", None, "payload")


@pytest.mark.parametrize(
    "endpoint",
    ["localhost:8080/svc", "svc/endpoint", "/svc", "ftp://host/svc", "http://"],
)
def test_endpoint_without_http_scheme_raises_transport_error(endpoint: str) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    with _transport(handler) as transport:
        with pytest.raises(TransportError, match="endpoint URL"):
            transport.send(endpoint, None, "payload")

    assert seen == []


def test_connection_error_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with _transport(handler) as transport:
        with pytest.raises(TransportError, match="HTTP error"):
            transport.send("http://host/svc", None, "payload")


def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with _transport(handler) as transport:
        with pytest.raises(TransportError, match="timeout"):
            transport.send("http://host/svc", None, "payload")
