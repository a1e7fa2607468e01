"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~restcli.exceptions.RestcliError` subclass.
External tooling (CI scripts, shell wrappers) can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ restcli get api.example.com/private
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- credentials could not be applied
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication could not be applied to the request."""

EXIT_CODEC_ERROR = 4
"""A body could not be marshalled or unmarshalled for the negotiated content type."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, TLS)."""

EXIT_DESCRIPTION_ERROR = 7
"""The API description could not be fetched or parsed."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to load, initialise, or register its components."""

EXIT_CANCELLED = 130
"""The operation was cancelled (Ctrl-C or a cancellation signal)."""
