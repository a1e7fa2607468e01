"""Hypermedia link extraction.

* :class:`LinkParser` -- interface for one linking convention.
* :class:`LinkResolver` -- runs all parsers and merges absolute links.
* Built-in parsers: :class:`LinkHeaderParser`, :class:`HALParser`,
  :class:`SimpleJSONParser` and :class:`JSONAPIParser`.
"""

from restcli.links.base import LinkParser, add_link
from restcli.links.engine import LinkResolver
from restcli.links.hal import HALParser
from restcli.links.jsonapi import JSONAPIParser
from restcli.links.link_header import LinkHeaderParser, parse_link_header
from restcli.links.simple import SimpleJSONParser


def register_default_link_parsers(resolver: LinkResolver) -> None:
    """Register the built-in parsers in precedence order."""
    resolver.register(LinkHeaderParser())
    resolver.register(HALParser())
    resolver.register(SimpleJSONParser())
    resolver.register(JSONAPIParser())


__all__ = [
    "HALParser",
    "JSONAPIParser",
    "LinkHeaderParser",
    "LinkParser",
    "LinkResolver",
    "SimpleJSONParser",
    "add_link",
    "parse_link_header",
    "register_default_link_parsers",
]
