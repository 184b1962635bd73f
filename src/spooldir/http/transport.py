"""HTTP transport that relays job payloads to their endpoints."""

from __future__ import annotations

import base64
import logging
from typing import Protocol

import httpx

from spooldir import __version__
from spooldir.queue.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 0
DEFAULT_CONTENT_TYPE = "text/xml; charset=utf-8"
DEFAULT_USER_AGENT = f"spooldir/{__version__}"
SUPPORTED_SCHEMES = frozenset({"http", "https"})


class JobTransport(Protocol):
    """Outbound call used by the dispatcher."""

    def send(self, endpoint: str, credentials: str | None, payload: str) -> bytes:
        """Deliver ``payload`` and return the raw response body."""


def basic_auth_header(credentials: str) -> str:
    """Render ``Authorization`` value for a ``user:password`` style secret."""

    token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class HttpTransport:
    """httpx client wrapper with retry, timeout and fixed content type.

    SOAP services report faults as HTTP 500 with the fault envelope as body.
    With ``accept_fault_responses`` (the default) such a body is returned like
    any other response so the fault is persisted for the producer.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        content_type: str = DEFAULT_CONTENT_TYPE,
        user_agent: str = DEFAULT_USER_AGENT,
        accept_fault_responses: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        self._content_type = content_type
        self._accept_fault_responses = accept_fault_responses
        self._client = httpx.Client(
            timeout=self._timeout,
            headers={"User-Agent": user_agent},
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def send(self, endpoint: str, credentials: str | None, payload: str) -> bytes:
        url = _endpoint_url(endpoint)
        headers = {"Content-Type": self._content_type}
        if credentials is not None:
            headers["Authorization"] = basic_auth_header(credentials)

        try:
            response = self._client.post(
                url,
                content=payload.encode("utf-8"),
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(f"timeout posting to {endpoint}") from exc
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise TransportError(f"HTTP error posting to {endpoint}: {exc}") from exc

        if self._is_fault_response(response):
            logger.warning(
                "POST %s returned HTTP %d with a fault body, keeping it as the response",
                endpoint,
                response.status_code,
            )
            return response.content
        if not response.is_success:
            raise TransportError(
                f"HTTP {response.status_code} from {endpoint}",
                status_code=response.status_code,
            )
        logger.debug(
            "POST %s -> %s (%d bytes)",
            endpoint,
            response.status_code,
            len(response.content),
        )
        return response.content

    def _is_fault_response(self, response: httpx.Response) -> bool:
        return (
            self._accept_fault_responses
            and response.status_code == httpx.codes.INTERNAL_SERVER_ERROR
            and bool(response.content)
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _endpoint_url(endpoint: str) -> httpx.URL:
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, ValueError) as exc:
        raise TransportError(f"invalid endpoint URL {endpoint!r}: {exc}") from exc
    if url.scheme not in SUPPORTED_SCHEMES or not url.host:
        raise TransportError(f"unsupported endpoint URL {endpoint!r}, expected http(s)://host/...")
    return url
