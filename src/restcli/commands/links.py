"""The ``links`` command -- list the hypermedia links of a resource.

Links come from every registered link parser (``Link`` headers, HAL,
simple JSON ``links`` arrays, JSON:API) and are shown with absolute
targets::

    restcli links petstore/pets
    restcli links petstore/pets next last
"""

from __future__ import annotations

from typing import Optional

import typer

from restcli.commands import get_runtime
from restcli.output import print_table, warning


def links_command(
    ctx: typer.Context,
    address: str = typer.Argument(help="URL, :port/path, or <api>/path of a configured API."),
    relations: Optional[list[str]] = typer.Argument(
        None, help="Only show these relations."
    ),
) -> None:
    """List the hypermedia links of a resource."""
    runtime = get_runtime(ctx)
    result = runtime.request("GET", address, paginate=False)
    for message in dict.fromkeys(result.warnings):
        warning(message)

    wanted = set(relations or ())
    rows: list[list[str]] = []
    for relation, links in result.first.links.items():
        if wanted and relation not in wanted:
            continue
        for link in links:
            rows.append(
                [relation, link.target, "yes" if link.templated else "", link.title or ""]
            )
    print_table(["rel", "target", "templated", "title"], rows, title=result.first.url)
