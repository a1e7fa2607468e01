"""HTTP transport over :class:`httpx.Client`.

:class:`HttpxTransport` sends a prepared :class:`httpx.Request` and returns
a :class:`RawResponse` whose body is exactly what came off the wire: the
response is streamed with :meth:`httpx.Response.iter_raw`, so
``Content-Encoding`` is *not* undone here. Decoding is the
:class:`~restcli.encoding.registry.EncodingRegistry`'s job, which lets
plugins add encodings httpx knows nothing about.

TLS options come from :class:`~restcli.models.PipelineSettings`:
``insecure`` disables verification, ``ca-cert`` adds a trust bundle and
``client-cert`` / ``client-key`` present a client certificate.

httpx failures are mapped to :class:`~restcli.exceptions.TimeoutError_`
and :class:`~restcli.exceptions.TransportError`. The cancel token is
checked before sending and between body chunks.
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from restcli.cancel import CancelToken
from restcli.exceptions import TimeoutError_, TransportError
from restcli.models import PipelineSettings

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass
class RawResponse:
    """An HTTP response with its undecoded body."""

    status: int
    reason: str
    headers: httpx.Headers
    content: bytes
    url: str
    method: str


def build_verify(settings: PipelineSettings) -> Union[bool, ssl.SSLContext]:
    """Build the ``verify`` argument for :class:`httpx.Client` from *settings*.

    Raises:
        TransportError: If a certificate or key file cannot be loaded.
    """
    if settings.insecure and not settings.client_cert:
        return False
    try:
        context = ssl.create_default_context(cafile=settings.ca_cert)
        if settings.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if settings.client_cert:
            context.load_cert_chain(settings.client_cert, settings.client_key)
    except (OSError, ssl.SSLError) as exc:
        raise TransportError(f"Cannot load TLS certificates: {exc}") from exc
    return context


class HttpxTransport:
    """Sends requests and returns raw responses.

    Use as a context manager, or call :meth:`close` when done.

    Args:
        settings: Per-invocation settings (timeout and TLS options).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
        client: A ready-made client to use instead of building one.

    Example::

        with HttpxTransport(settings) as transport:
            request = transport.build_request("GET", "https://api.example.com/")
            raw = transport.send(request)
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        settings = settings or PipelineSettings()
        if client is None:
            client = httpx.Client(
                timeout=settings.timeout,
                verify=build_verify(settings),
                follow_redirects=True,
                transport=transport,
            )
        self._client = client

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: Any = None,
        content: Optional[bytes] = None,
    ) -> httpx.Request:
        """Build a request without sending it."""
        try:
            return self._client.build_request(method.upper(), url, headers=headers, content=content)
        except httpx.InvalidURL as exc:
            raise TransportError(f"Invalid URL '{url}': {exc}", url) from exc

    def send(self, request: httpx.Request, cancel: Optional[CancelToken] = None) -> RawResponse:
        """Send *request* and read the whole body without decoding it.

        Raises:
            TimeoutError_: The request timed out.
            TransportError: Connection, TLS or protocol failure.
            CancelledError_: *cancel* fired before or during the exchange.
        """
        url = str(request.url)
        if cancel is not None:
            cancel.raise_if_cancelled("request")
        logger.debug("%s %s", request.method, url)

        try:
            response = self._client.send(request, stream=True)
            try:
                chunks: list[bytes] = []
                if response.is_stream_consumed:
                    # In-memory responses (e.g. from a mock transport) arrive already read.
                    chunks.append(response.content)
                else:
                    for chunk in response.iter_raw(_CHUNK_SIZE):
                        if cancel is not None:
                            cancel.raise_if_cancelled("response body")
                        chunks.append(chunk)
            finally:
                response.close()
        except httpx.TimeoutException as exc:
            raise TimeoutError_(f"Request to {url} timed out: {exc}", url) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", url) from exc

        logger.debug("%s %s -> %d", request.method, response.url, response.status_code)
        return RawResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            headers=response.headers,
            content=b"".join(chunks),
            url=str(response.url),
            method=request.method,
        )
