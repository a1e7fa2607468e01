"""API key handler -- static key in a header or query parameter.

Implements the ``api-key`` scheme. The key comes from the ``value``
parameter. When ``query`` is set the key is sent as that query parameter;
otherwise it goes in the header named by ``header`` (``X-API-Key`` by
default).

See Also:
    :class:`restcli.auth.base.AuthHandler` for the base interface.
    :func:`restcli.config.resolve_credential` for how ``value`` references
    are resolved.
"""

from __future__ import annotations

from typing import Optional

import httpx

from restcli.auth.base import AuthHandler, set_query_param
from restcli.cancel import CancelToken
from restcli.models import AuthParam

DEFAULT_HEADER = "X-API-Key"


class APIKeyAuth(AuthHandler):
    """Authenticate via API key placed in a header or query parameter."""

    def parameters(self) -> list[AuthParam]:
        return [
            AuthParam(name="value", help="The key or an env:/file: reference", required=True),
            AuthParam(name="header", help=f"Header name (default {DEFAULT_HEADER})"),
            AuthParam(name="query", help="Send as this query parameter instead of a header"),
        ]

    def apply(
        self,
        request: httpx.Request,
        key: str,
        params: dict[str, str],
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> None:
        credential = params["value"]
        query_name = params.get("query")
        if query_name:
            set_query_param(request, query_name, credential)
            return
        request.headers[params.get("header") or DEFAULT_HEADER] = credential
