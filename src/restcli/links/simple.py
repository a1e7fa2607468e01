"""Terrifically simple JSON link parser.

Two flat shapes are recognised at the document root::

    {"self": "/items/1", "links": [{"rel": "next", "href": "/items?page=2"}]}

A string ``self`` member becomes the ``self`` relation; every
``{rel, href}`` object in a ``links`` array becomes a link.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from restcli.links.base import LinkParser, add_link
from restcli.models import LinkMap

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse


class SimpleJSONParser(LinkParser):
    @property
    def name(self) -> str:
        return "simple-json"

    def parse(self, response: ParsedResponse) -> LinkMap:
        links: LinkMap = {}
        body = response.body
        if not isinstance(body, dict):
            return links

        add_link(links, "self", body.get("self"))

        entries = body.get("links")
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, dict):
                    add_link(links, entry.get("rel"), entry.get("href"), title=entry.get("title"))
        return links
