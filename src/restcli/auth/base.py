"""Abstract base class for auth handlers.

An :class:`AuthHandler` injects credentials into an outgoing
:class:`httpx.Request`. Handlers are registered by scheme name (``http-basic``,
``bearer``, ...) in the :class:`~restcli.auth.registry.AuthRegistry`, which
validates the configured parameters before the handler ever runs.

To add a scheme, subclass :class:`AuthHandler`, declare its inputs in
:meth:`~AuthHandler.parameters` and mutate the request in
:meth:`~AuthHandler.apply`. Ship it as a plugin (see
:mod:`restcli.plugins.base`) so it is registered at startup.

See Also:
    :mod:`restcli.auth.registry` for registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from restcli.cancel import CancelToken
from restcli.models import AuthParam


class AuthHandler(ABC):
    """Base class for all auth schemes.

    Handlers are stateless with respect to individual requests: everything
    they need arrives through the arguments to :meth:`apply`.
    """

    @abstractmethod
    def parameters(self) -> list[AuthParam]:
        """Declare the inputs this scheme takes, in prompt order.

        Returns:
            The ordered parameter declarations. The registry refuses to call
            :meth:`apply` while any ``required`` one is missing.
        """
        ...

    @abstractmethod
    def apply(
        self,
        request: httpx.Request,
        key: str,
        params: dict[str, str],
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Add credentials to *request* in place.

        Args:
            request: The outgoing request to mutate.
            key: The profile key (``<api>:<profile>``) the credentials belong to.
            params: Resolved parameter values; every required one is present.
            cancel: Cancellation signal for handlers that block.
            timeout: Upper bound in seconds for handlers that block.

        Raises:
            Exception: Any failure. The registry wraps it in
                :class:`~restcli.exceptions.AuthHandlerError`.
        """
        ...


def set_query_param(request: httpx.Request, name: str, value: str) -> None:
    """Add or replace one query parameter on an already-built request."""
    request.url = request.url.copy_set_param(name, value)
