"""JSON:API (``application/vnd.api+json``) link parser.

Collects:

* the top-level ``links`` object (``self``, ``next``, ``prev``, ...), whose
  values are strings or ``{"href": ...}`` link objects;
* ``links.self`` of every resource in a ``data`` array, as relation ``item``;
* ``relationships.<name>.links.related`` of a single ``data`` resource, as
  relation ``<name>``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from restcli.links.base import LinkParser, add_link
from restcli.models import LinkMap

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse


def _href(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("href"), str):
        return value["href"]
    return None


class JSONAPIParser(LinkParser):
    @property
    def name(self) -> str:
        return "jsonapi"

    def parse(self, response: ParsedResponse) -> LinkMap:
        links: LinkMap = {}
        body = response.body
        if not isinstance(body, dict):
            return links

        top = body.get("links")
        if isinstance(top, dict):
            for relation, value in top.items():
                add_link(links, relation, _href(value))

        data = body.get("data")
        if isinstance(data, list):
            for resource in data:
                if isinstance(resource, dict) and isinstance(resource.get("links"), dict):
                    add_link(links, "item", _href(resource["links"].get("self")))
        elif isinstance(data, dict):
            relationships = data.get("relationships")
            if isinstance(relationships, dict):
                for name, rel in relationships.items():
                    if isinstance(rel, dict) and isinstance(rel.get("links"), dict):
                        add_link(links, name, _href(rel["links"].get("related")))
        return links
