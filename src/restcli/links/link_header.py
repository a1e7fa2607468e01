"""RFC 8288 ``Link`` header parser.

Handles several ``Link`` headers and comma-joined values in one header,
quoted parameters that contain commas or semicolons, and space-separated
relation lists (``rel="next last"`` yields two links).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from restcli.links.base import LinkParser, add_link
from restcli.models import LinkMap

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse

_LINK_VALUE = re.compile(
    r'<(?P<target>[^>]*)>(?P<params>(?:\s*;\s*[^;,"=\s]+(?:\s*=\s*(?:"[^"]*"|[^;,]*))?)*)'
)
_LINK_PARAM = re.compile(
    r';\s*(?P<name>[^;,"=\s]+)(?:\s*=\s*(?:"(?P<quoted>[^"]*)"|(?P<token>[^;,]*)))?'
)


def parse_link_header(value: str) -> list[tuple[str, dict[str, str]]]:
    """Split one ``Link`` header value into ``(target, params)`` pairs.

    Parameter names are lower-cased. When a parameter repeats within one
    link only its first occurrence counts.

    Example::

        >>> parse_link_header('</p/2>; rel="next", </p/9>; rel=last')
        [('/p/2', {'rel': 'next'}), ('/p/9', {'rel': 'last'})]
    """
    results: list[tuple[str, dict[str, str]]] = []
    for match in _LINK_VALUE.finditer(value):
        params: dict[str, str] = {}
        for param in _LINK_PARAM.finditer(match.group("params") or ""):
            name = param.group("name").lower()
            if param.group("quoted") is not None:
                param_value = param.group("quoted")
            else:
                param_value = (param.group("token") or "").strip()
            params.setdefault(name, param_value)
        results.append((match.group("target").strip(), params))
    return results


class LinkHeaderParser(LinkParser):
    """Links from ``Link`` response headers."""

    @property
    def name(self) -> str:
        return "link-header"

    def parse(self, response: ParsedResponse) -> LinkMap:
        links: LinkMap = {}
        for header in response.headers.get_list("link"):
            for target, params in parse_link_header(header):
                for relation in params.get("rel", "").split():
                    add_link(links, relation, target, title=params.get("title"))
        return links
