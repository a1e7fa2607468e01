"""Built-in CLI commands.

* :mod:`~restcli.commands.verbs` -- ``get``, ``head``, ``options``,
  ``post``, ``put``, ``patch`` and ``delete`` for any address.
* :mod:`~restcli.commands.links` -- list a resource's hypermedia links.
* :mod:`~restcli.commands.cert` -- show a server's TLS certificate.
* :mod:`~restcli.commands.api` -- manage configured APIs and profiles.
"""

from __future__ import annotations

import click

from restcli.runtime import Runtime


def get_runtime(ctx: click.Context) -> Runtime:
    """Return the :class:`~restcli.runtime.Runtime` created by the root callback."""
    runtime = ctx.find_object(Runtime)
    if runtime is None:
        raise click.UsageError("restcli commands must run under the restcli root command")
    return runtime
