"""Link resolution engine.

The :class:`LinkResolver` runs every registered
:class:`~restcli.links.base.LinkParser` over the same response and merges
their results into one :data:`~restcli.models.LinkMap`:

* relations are concatenated, in parser registration order first and each
  parser's own discovery order second;
* targets are resolved against the response's effective URL, so every
  surfaced link is absolute (templated links keep their template text);
* relations left without links are dropped.

A parser that raises is logged and treated as having found nothing, so one
odd document never breaks link extraction for the others.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from restcli.links.base import LinkParser
from restcli.models import Link, LinkMap
from restcli.registry import FreezableRegistry

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse

logger = logging.getLogger(__name__)


class LinkResolver(FreezableRegistry):
    """Ordered registry of link parsers plus the merge step."""

    _kind = "link parser registry"

    def __init__(self) -> None:
        super().__init__()
        self._parsers: dict[str, LinkParser] = {}

    def register(self, parser: LinkParser) -> None:
        """Register *parser* under its name, replacing one of the same name in place."""
        self._check_mutable(parser.name)
        self._parsers[parser.name] = parser

    def names(self) -> list[str]:
        return list(self._parsers)

    def resolve(self, response: ParsedResponse) -> LinkMap:
        """Collect and merge the links of *response*.

        Returns:
            Relation name to absolute links. Empty when no parser found any.
        """
        merged: LinkMap = {}
        for name, parser in self._parsers.items():
            try:
                found = parser.parse(response)
            except Exception:
                logger.warning("Link parser '%s' failed on %s", name, response.url, exc_info=True)
                continue
            for relation, links in found.items():
                for link in links:
                    merged.setdefault(relation, []).append(_absolute(link, response.url))
        return {relation: links for relation, links in merged.items() if links}


def _absolute(link: Link, base: str) -> Link:
    target = urljoin(base, link.target) if base else link.target
    if target == link.target:
        return link
    return link.model_copy(update={"target": target})
