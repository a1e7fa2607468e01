"""Auth registry -- scheme lookup, parameter validation and dispatch.

The :class:`AuthRegistry` maps scheme names to
:class:`~restcli.auth.base.AuthHandler` instances. :meth:`~AuthRegistry.apply`
is the single entry point the request pipeline uses:

1. look up the handler (:class:`~restcli.exceptions.UnknownAuthSchemeError`);
2. resolve credential references in parameter values (``env:VAR`` and
   ``file:/path``, see :func:`~restcli.config.resolve_credential`);
3. check every required parameter has a non-empty value
   (:class:`~restcli.exceptions.MissingAuthParamError`; the handler is not
   called);
4. call the handler, wrapping anything it raises in
   :class:`~restcli.exceptions.AuthHandlerError`.

Failures abort the current request only; they never terminate the process.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import httpx

from restcli.auth.base import AuthHandler
from restcli.cancel import CancelToken
from restcli.config import resolve_credential
from restcli.exceptions import (
    AuthError,
    AuthHandlerError,
    CancelledError_,
    ConfigError,
    MissingAuthParamError,
    TimeoutError_,
    UnknownAuthSchemeError,
)
from restcli.registry import FreezableRegistry

logger = logging.getLogger(__name__)


class AuthRegistry(FreezableRegistry):
    """Registry and dispatcher for auth handlers.

    Example::

        registry = AuthRegistry()
        registry.register("http-basic", HTTPBasicAuth())
        registry.apply("http-basic", "petstore:default",
                       {"username": "kari", "password": "env:PW"}, request)
    """

    _kind = "auth registry"

    def __init__(self) -> None:
        super().__init__()
        self._handlers: dict[str, AuthHandler] = {}

    def register(self, scheme: str, handler: AuthHandler) -> None:
        """Register *handler* under *scheme*, replacing any previous one."""
        self._check_mutable(scheme)
        if not scheme:
            raise ValueError("Auth scheme name must not be empty")
        self._handlers[scheme] = handler

    def get(self, scheme: str) -> AuthHandler:
        """Return the handler for *scheme*.

        Raises:
            UnknownAuthSchemeError: If nothing is registered for *scheme*.
        """
        handler = self._handlers.get(scheme)
        if handler is None:
            raise UnknownAuthSchemeError(scheme, self.schemes())
        return handler

    def schemes(self) -> list[str]:
        """Registered scheme names in registration order."""
        return list(self._handlers)

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._handlers

    def apply(
        self,
        scheme: str,
        key: str,
        params: Mapping[str, str],
        request: httpx.Request,
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Validate *params* and let the *scheme* handler sign *request*.

        Args:
            scheme: Registered scheme name.
            key: Profile key (``<api>:<profile>``), passed to the handler and
                used in error messages.
            params: Configured parameter values, possibly credential references.
            request: The request to mutate.
            cancel: Forwarded to the handler.
            timeout: Forwarded to the handler.

        Raises:
            UnknownAuthSchemeError: Unregistered *scheme*.
            MissingAuthParamError: A required parameter is absent or empty.
            AuthError: A credential reference cannot be resolved.
            AuthHandlerError: The handler failed.
            CancelledError_: *cancel* fired while the handler ran.
            TimeoutError_: The handler exceeded *timeout*.
        """
        handler = self.get(scheme)
        resolved = self._resolve(scheme, key, params)

        for param in handler.parameters():
            if param.required and not resolved.get(param.name):
                raise MissingAuthParamError(scheme, param.name, key)

        logger.debug("Applying auth scheme '%s' for %s", scheme, key)
        try:
            handler.apply(request, key, resolved, cancel=cancel, timeout=timeout)
        except (AuthError, CancelledError_, TimeoutError_):
            raise
        except Exception as exc:
            raise AuthHandlerError(scheme, exc, key) from exc

    @staticmethod
    def _resolve(scheme: str, key: str, params: Mapping[str, str]) -> dict[str, str]:
        resolved: dict[str, str] = {}
        for name, value in params.items():
            if value is None:
                continue
            try:
                resolved[name] = resolve_credential(str(value))
            except ConfigError as exc:
                raise AuthError(
                    f"Cannot resolve parameter '{name}' of auth scheme '{scheme}' "
                    f"for {key}: {exc}"
                ) from exc
        return resolved
