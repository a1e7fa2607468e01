"""Exception hierarchy for restcli.

All exceptions inherit from :class:`RestcliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`restcli.exit_codes`.
Library code only raises; the top-level error handler in
:func:`restcli.app.main` is the single place that turns an exception into a
process exit code.

Subclass hierarchy::

    RestcliError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- ConfigError              (exit 1)
    +-- NoCodecError             (exit 4)
    +-- AuthError                (exit 3)
    |   +-- UnknownAuthSchemeError
    |   +-- MissingAuthParamError
    |   +-- AuthHandlerError
    +-- DescriptionError         (exit 7)
    |   +-- DescriptionFetchError
    |   +-- DescriptionParseError
    +-- TransportError           (exit 6)
    |   +-- TimeoutError_
    +-- CancelledError_          (exit 130)
    +-- PageLimitExceeded        (informational)
    +-- RegistryFrozenError      (exit 10)
    +-- PluginError              (exit 10)
"""

from __future__ import annotations

from typing import Optional

from restcli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CODEC_ERROR,
    EXIT_DESCRIPTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PLUGIN_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class RestcliError(Exception):
    """Base exception for all restcli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`restcli.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RestcliError):
    """Raised for invalid CLI arguments or malformed request input."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(RestcliError):
    """Raised for configuration problems (unknown API, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class NoCodecError(RestcliError):
    """Raised when no registered codec handles a content type."""

    exit_code = EXIT_CODEC_ERROR

    def __init__(self, content_type: str, message: str | None = None):
        self.content_type = content_type
        super().__init__(message or f"No codec registered for content type '{content_type}'")


class AuthError(RestcliError):
    """Base class for failures while applying credentials to a request."""

    exit_code = EXIT_AUTH_FAILURE


class UnknownAuthSchemeError(AuthError):
    """Raised when a profile names an auth scheme that is not registered."""

    def __init__(self, scheme: str, available: list[str]):
        self.scheme = scheme
        names = ", ".join(available) or "(none)"
        super().__init__(
            f"No auth handler registered for scheme '{scheme}'. Available schemes: {names}"
        )


class MissingAuthParamError(AuthError):
    """Raised when a required auth parameter has no value.

    The handler is never invoked when this is raised.
    """

    def __init__(self, scheme: str, param: str, key: str = ""):
        self.scheme = scheme
        self.param = param
        self.key = key
        where = f" (profile {key})" if key else ""
        super().__init__(f"Auth scheme '{scheme}' requires parameter '{param}'{where}")


class AuthHandlerError(AuthError):
    """Wraps a failure raised inside an auth handler.

    Attributes:
        handler: Registered scheme name of the failing handler.
        cause: The underlying exception.
    """

    def __init__(self, handler: str, cause: BaseException | str, key: str = ""):
        self.handler = handler
        self.cause = cause
        self.key = key
        where = f" (profile {key})" if key else ""
        super().__init__(f"Auth handler '{handler}' failed{where}: {cause}")


class DescriptionError(RestcliError):
    """Base class for API description loading failures."""

    exit_code = EXIT_DESCRIPTION_ERROR


class DescriptionFetchError(DescriptionError):
    """Raised when an API description cannot be fetched over HTTP."""

    def __init__(self, location: str, reason: str):
        self.location = location
        super().__init__(f"Failed to fetch API description from {location}: {reason}")


class DescriptionParseError(DescriptionError):
    """Raised when an API description is malformed or unsupported."""

    def __init__(self, message: str, location: Optional[str] = None):
        self.location = location
        if location:
            message = f"{message} (in {location})"
        super().__init__(message)


class TransportError(RestcliError):
    """Raised on network-level failures (DNS, connection refused, TLS)."""

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class TimeoutError_(TransportError):
    """Raised when a request or auth command exceeds its timeout.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """


class CancelledError_(RestcliError):
    """Raised when a caller-supplied cancellation signal fires.

    Named with a trailing underscore to avoid shadowing
    ``asyncio.CancelledError``.
    """

    exit_code = EXIT_CANCELLED


class PageLimitExceeded(RestcliError):
    """Informational: pagination stopped at the configured page ceiling.

    Never raised by the pipeline; recorded on the paginated result so that
    callers can tell a truncated listing from a complete one.
    """

    def __init__(self, limit: int, next_url: str = ""):
        self.limit = limit
        self.next_url = next_url
        super().__init__(f"Stopped after {limit} pages; more results are available")


class RegistryFrozenError(RestcliError):
    """Raised when registering into a registry after the pipeline was built."""

    exit_code = EXIT_PLUGIN_ERROR


class PluginError(RestcliError):
    """Raised when a plugin fails to load or register its components."""

    exit_code = EXIT_PLUGIN_ERROR
