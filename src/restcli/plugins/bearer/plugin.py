"""Bearer token authentication handler.

Implements the ``bearer`` scheme. The ``token`` parameter (usually a
credential reference such as ``env:MY_TOKEN``) is sent as
``Authorization: Bearer <token>``. No token exchange or refresh happens
here; the token must already exist.
"""

from __future__ import annotations

from typing import Optional

import httpx

from restcli.auth.base import AuthHandler
from restcli.cancel import CancelToken
from restcli.models import AuthParam


class BearerAuth(AuthHandler):
    """Authenticate via a Bearer token in the Authorization header."""

    def parameters(self) -> list[AuthParam]:
        return [AuthParam(name="token", help="Token or env:/file: reference", required=True)]

    def apply(
        self,
        request: httpx.Request,
        key: str,
        params: dict[str, str],
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> None:
        request.headers["Authorization"] = f"Bearer {params['token']}"
