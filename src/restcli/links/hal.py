"""HAL (``application/hal+json``) link parser.

Reads the ``_links`` object at the document root. Each relation maps to a
link object or a list of them; ``templated`` and ``title`` are kept. The
``curies`` relation only defines prefixes and is skipped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from restcli.links.base import LinkParser, add_link
from restcli.models import LinkMap

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse


class HALParser(LinkParser):
    @property
    def name(self) -> str:
        return "hal"

    def parse(self, response: ParsedResponse) -> LinkMap:
        links: LinkMap = {}
        body = response.body
        if not isinstance(body, dict) or not isinstance(body.get("_links"), dict):
            return links

        for relation, value in body["_links"].items():
            if relation == "curies":
                continue
            items = value if isinstance(value, list) else [value]
            for item in items:
                if not isinstance(item, dict):
                    continue
                add_link(
                    links,
                    relation,
                    item.get("href"),
                    templated=bool(item.get("templated", False)),
                    title=item.get("title"),
                )
        return links
