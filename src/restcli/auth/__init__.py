"""Pluggable authentication for restcli.

- :class:`AuthHandler` -- abstract base class for auth schemes.
- :class:`AuthRegistry` -- maps scheme names to handlers, validates
  parameters and dispatches.

Built-in handlers live in :mod:`restcli.plugins` (``http-basic``,
``api-key-header``, ``bearer`` and ``api-key``).

Typical usage::

    from restcli.auth import AuthRegistry

    registry = AuthRegistry()
    registry.register("bearer", BearerAuth())
    registry.apply("bearer", "petstore:default", {"token": "env:TOKEN"}, request)
"""

from restcli.auth.base import AuthHandler
from restcli.auth.registry import AuthRegistry

__all__ = ["AuthHandler", "AuthRegistry"]
