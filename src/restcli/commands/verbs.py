"""Generic HTTP verb commands.

Each verb takes an address (URL, ``:port/path`` or ``<api>/path``) and,
for methods with a body, body shorthand arguments::

    restcli get petstore/pets
    restcli post petstore/pets name: Kitty, tags: [cute]
    echo '{"name": "Kitty"}' | restcli put petstore/pets/1
"""

from __future__ import annotations

from typing import Optional

import typer

from restcli.commands import get_runtime

_ADDRESS_HELP = "URL, :port/path, or <api>/path of a configured API."
_BODY_HELP = "Body as JSON or shorthand (key: value, ...); @file reads a file."


def _make_simple(method: str):  # noqa: ANN202
    def command(
        ctx: typer.Context,
        address: str = typer.Argument(help=_ADDRESS_HELP),
    ) -> None:
        runtime = get_runtime(ctx)
        runtime.show(runtime.request(method, address))

    command.__doc__ = f"Send a {method} request."
    return command


def _make_with_body(method: str):  # noqa: ANN202
    def command(
        ctx: typer.Context,
        address: str = typer.Argument(help=_ADDRESS_HELP),
        body: Optional[list[str]] = typer.Argument(None, help=_BODY_HELP),
        content_type: Optional[str] = typer.Option(
            None, "--content-type", "-c", help="Request body media type."
        ),
    ) -> None:
        from restcli.generator.command_slot import read_body_args

        runtime = get_runtime(ctx)
        args = read_body_args(tuple(body or ()))
        runtime.show(runtime.request(method, address, args, content_type=content_type))

    command.__doc__ = f"Send a {method} request with an optional body."
    return command


def register(app: typer.Typer) -> None:
    """Attach the verb commands to *app*."""
    for method in ("GET", "HEAD", "OPTIONS"):
        app.command(method.lower())(_make_simple(method))
    for method in ("POST", "PUT", "PATCH", "DELETE"):
        app.command(method.lower())(_make_with_body(method))
