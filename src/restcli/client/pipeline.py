"""The request pipeline: from CLI arguments to parsed, paginated responses.

:class:`RequestPipeline` runs every request through the same steps:

1. resolve the address (:class:`~restcli.client.address.AddressResolver`);
2. build the body from arguments or stdin and marshal it with the
   request codec picked by the content-type registry;
3. set ``Accept`` and ``Accept-Encoding`` from the registries, then merge
   headers and query parameters (API profile, global ``--header`` /
   ``--query`` settings, explicit arguments, in increasing precedence);
4. let the profile's auth handler sign the request;
5. answer GETs from the response cache when possible;
6. send through the transport and undo the content-encoding;
7. unmarshal the body (an unknown type or a broken body is a warning and
   the raw text or bytes are kept);
8. extract hypermedia links;
9. follow ``next`` links for GETs unless pagination is disabled.

Each call is self-contained; the pipeline reads its registries from a
frozen :class:`~restcli.client.context.PipelineContext` and its options
from :class:`~restcli.models.PipelineSettings`, never from globals.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, TextIO

import httpx

from restcli.cache.cache import ResponseCache
from restcli.cancel import CancelToken
from restcli.client.address import AddressResolver
from restcli.client.body import build_body
from restcli.client.context import PipelineContext
from restcli.client.pagination import PaginatedResponse, PaginationState, Paginator
from restcli.client.response import ParsedResponse
from restcli.client.transport import HttpxTransport
from restcli.content.registry import media_type_of
from restcli.exceptions import CancelledError_, InvalidUsageError, NoCodecError
from restcli.models import APIEntry, PipelineSettings

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"


class RequestPipeline:
    """Executes requests against a frozen pipeline context.

    Args:
        context: Frozen registries.
        transport: Sends requests.
        settings: Per-invocation options.
        apis: Configured APIs, for short addresses and profile auth.
        cache: Optional GET response cache.
        auth_timeout: Upper bound for auth handlers that block.

    Example::

        with HttpxTransport(settings) as transport:
            pipeline = RequestPipeline(context, transport, settings, apis=load_all_apis())
            result = pipeline.execute("GET", "petstore/pets")
            result.body
    """

    def __init__(
        self,
        context: PipelineContext,
        transport: HttpxTransport,
        settings: Optional[PipelineSettings] = None,
        *,
        apis: Optional[Mapping[str, APIEntry]] = None,
        cache: Optional[ResponseCache] = None,
        auth_timeout: Optional[float] = None,
    ) -> None:
        self._context = context
        self._transport = transport
        self._settings = settings or PipelineSettings()
        self._addresses = AddressResolver(apis, self._settings)
        self._cache = cache
        self._auth_timeout = auth_timeout

    @property
    def context(self) -> PipelineContext:
        return self._context

    @property
    def addresses(self) -> AddressResolver:
        return self._addresses

    def execute(
        self,
        method: str,
        address: str,
        args: Sequence[str] = (),
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        content_type: Optional[str] = None,
        paginate: Optional[bool] = None,
        cancel: Optional[CancelToken] = None,
        on_page: Optional[Callable[[ParsedResponse], None]] = None,
        stdin: Optional[TextIO] = None,
    ) -> PaginatedResponse:
        """Run one request, following pages for GETs.

        Args:
            method: HTTP method.
            address: URL or short address, see :mod:`restcli.client.address`.
            args: Body shorthand arguments; ignored when *body* is given.
            headers: Extra request headers (highest precedence).
            params: Extra query parameters (highest precedence).
            body: Body value to marshal, or ``bytes`` to send unchanged.
            content_type: Request media type; otherwise the ``Content-Type``
                in *headers*, otherwise the preferred registered codec.
            paginate: Force pagination off (``False``) or on (``True``, GET
                only); ``None`` follows the ``no-paginate`` setting.
            cancel: Cooperative cancellation.
            on_page: Called with each page as it arrives.
            stdin: Stream to read a body from when it is not a terminal.

        Returns:
            The pages fetched.

        Raises:
            InvalidUsageError: Bad address or body.
            AuthError: Auth dispatch failed.
            TransportError: The request could not be completed.
            CancelledError_: Cancelled before the first page arrived.
        """
        paginator = self.paginator(
            method,
            address,
            args,
            headers=headers,
            params=params,
            body=body,
            content_type=content_type,
            paginate=paginate,
            cancel=cancel,
            on_page=on_page,
            stdin=stdin,
        )
        result = paginator.run()
        if result.state == PaginationState.CANCELLED and not result.pages:
            raise CancelledError_("Request cancelled")
        return result

    def paginator(
        self,
        method: str,
        address: str,
        args: Sequence[str] = (),
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        content_type: Optional[str] = None,
        paginate: Optional[bool] = None,
        cancel: Optional[CancelToken] = None,
        on_page: Optional[Callable[[ParsedResponse], None]] = None,
        stdin: Optional[TextIO] = None,
    ) -> Paginator:
        """Prepare the request and return an unstarted :class:`Paginator`.

        Accepts the same arguments as :meth:`execute`. Useful for streaming
        pages, or for keeping the pages fetched before a failure.
        """
        method = method.upper()
        url = self._addresses.resolve(address)
        payload = body if body is not None else build_body(args, stdin)
        extra_headers = httpx.Headers(dict(headers or {}))
        content, request_type = self._marshal(
            payload, content_type or extra_headers.get("content-type")
        )
        if request_type:
            extra_headers["Content-Type"] = request_type

        follow = method == "GET" and (
            not self._settings.no_paginate if paginate is None else paginate
        )

        def fetch(page_url: str) -> ParsedResponse:
            return self.fetch(
                method,
                page_url,
                headers=extra_headers,
                params=params if page_url == url else None,
                content=content,
                cancel=cancel,
                keep_url_query=page_url != url,
            )

        return Paginator(
            fetch,
            url,
            follow=follow,
            max_pages=self._settings.max_pages,
            cancel=cancel,
            on_page=on_page,
        )

    def fetch(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[httpx.Headers] = None,
        params: Optional[Mapping[str, Any]] = None,
        content: Optional[bytes] = None,
        cancel: Optional[CancelToken] = None,
        keep_url_query: bool = False,
    ) -> ParsedResponse:
        """Send a single request to an absolute *url* and parse the response.

        With *keep_url_query*, profile and global query pairs are only added
        for names *url* does not already carry, as for a followed next link.
        """
        method = method.upper()
        entry = self._addresses.api_for(url)
        request = self._build_request(
            method, url, entry, headers, params, content, keep_url_query=keep_url_query
        )
        request_url = str(request.url)

        vary = f"{entry.name}:{self._settings.profile}" if entry else ""
        use_cache = self._cache is not None and method == "GET" and not self._settings.no_cache
        if use_cache:
            cached = self._cache.get(method, request_url, vary)
            if cached is not None:
                return self._parse(
                    method,
                    cached["url"],
                    cached["status"],
                    httpx.Headers(cached["headers"]),
                    cached["content"],
                    reason=cached.get("reason", ""),
                    from_cache=True,
                )

        if entry is not None:
            self._apply_auth(entry, request, cancel)

        raw = self._transport.send(request, cancel)
        decoded = self._context.encodings.decode(raw.headers.get("content-encoding"), raw.content)

        if use_cache and not decoded.warnings:
            self._cache.set(
                method,
                request_url,
                vary,
                raw.status,
                raw.headers,
                decoded.data,
                reason=raw.reason,
                final_url=raw.url,
            )

        return self._parse(
            method,
            raw.url,
            raw.status,
            raw.headers,
            decoded.data,
            reason=raw.reason,
            warnings=list(decoded.warnings),
        )

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def _marshal(
        self, payload: Any, content_type: Optional[str]
    ) -> tuple[Optional[bytes], Optional[str]]:
        if payload is None:
            return None, None
        if isinstance(payload, (bytes, bytearray)):
            return bytes(payload), content_type or OCTET_STREAM

        media_type, codec = self._context.content_types.select_for_request(content_type)
        try:
            return codec.marshal(payload), media_type
        except ValueError as exc:
            raise InvalidUsageError(f"Cannot encode request body as {media_type}: {exc}") from exc

    def _build_request(
        self,
        method: str,
        url: str,
        entry: Optional[APIEntry],
        headers: Optional[httpx.Headers],
        params: Optional[Mapping[str, Any]],
        content: Optional[bytes],
        keep_url_query: bool = False,
    ) -> httpx.Request:
        merged = httpx.Headers()
        accept = self._context.content_types.build_accept_header()
        if accept:
            merged["Accept"] = accept
        accept_encoding = self._context.encodings.build_accept_encoding_header()
        if accept_encoding:
            merged["Accept-Encoding"] = accept_encoding

        target = httpx.URL(url)
        query: list[tuple[str, str]] = []
        if entry is not None:
            profile = entry.profile(self._settings.profile)
            merged.update(profile.headers)
            query.extend(profile.query.items())
        for name, value in self._settings.header_pairs():
            merged[name] = value
        query.extend(self._settings.query_pairs())
        if keep_url_query:
            query = [(name, value) for name, value in query if name not in target.params]
        if headers:
            merged.update(headers)
        if params:
            query.extend(_query_items(params))

        if query:
            target = target.copy_merge_params(httpx.QueryParams(query))
        return self._transport.build_request(method, str(target), headers=merged, content=content)

    def _apply_auth(
        self, entry: APIEntry, request: httpx.Request, cancel: Optional[CancelToken]
    ) -> None:
        profile = entry.profile(self._settings.profile)
        if profile.auth is None:
            return
        self._context.auth.apply(
            profile.auth.name,
            f"{entry.name}:{self._settings.profile}",
            profile.auth.params,
            request,
            cancel=cancel,
            timeout=self._auth_timeout,
        )

    def _parse(
        self,
        method: str,
        url: str,
        status: int,
        headers: httpx.Headers,
        data: bytes,
        *,
        reason: str = "",
        warnings: Optional[list[str]] = None,
        from_cache: bool = False,
    ) -> ParsedResponse:
        response = ParsedResponse(
            method=method,
            url=url,
            status=status,
            headers=headers,
            raw=data,
            reason=reason,
            content_type=headers.get("content-type", ""),
            warnings=warnings or [],
            from_cache=from_cache,
        )
        response.body = self._unmarshal(response)
        response.links = self._context.links.resolve(response)
        return response

    def _unmarshal(self, response: ParsedResponse) -> Any:
        data = response.raw
        if not data:
            return None
        if response.method == "HEAD":
            return None

        try:
            codec = self._context.content_types.select_for_response(response.content_type)
        except NoCodecError:
            if response.content_type:
                media_type = media_type_of(response.content_type)
                _warn(response, f"No codec for content type '{media_type}'; showing raw body")
            return _raw_fallback(data)
        try:
            return codec.unmarshal(data)
        except ValueError as exc:
            _warn(response, f"Could not parse {media_type_of(response.content_type)} body: {exc}")
            return _raw_fallback(data)


def _warn(response: ParsedResponse, message: str) -> None:
    logger.debug(message)
    response.warnings.append(message)


def _raw_fallback(data: bytes) -> Any:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


def _query_items(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Flatten *params*: ``None`` is dropped, lists repeat the name."""
    items: list[tuple[str, str]] = []
    for name, value in params.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            if isinstance(item, bool):
                item = "true" if item else "false"
            items.append((name, str(item)))
    return items
