"""HTTP Basic authentication handler.

Implements the ``http-basic`` scheme: ``username`` and ``password`` are
joined, Base64-encoded and sent as ``Authorization: Basic <encoded>`` per
:rfc:`7617`.

See Also:
    :class:`restcli.auth.base.AuthHandler` for the base interface.
"""

from __future__ import annotations

import base64
from typing import Optional

import httpx

from restcli.auth.base import AuthHandler
from restcli.cancel import CancelToken
from restcli.models import AuthParam


class HTTPBasicAuth(AuthHandler):
    """Authenticate with a username and password."""

    def parameters(self) -> list[AuthParam]:
        return [
            AuthParam(name="username", required=True),
            AuthParam(name="password", required=True),
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
        raw = f"{params['username']}:{params['password']}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        request.headers["Authorization"] = f"Basic {encoded}"
