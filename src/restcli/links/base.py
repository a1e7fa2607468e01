"""Abstract base class for hypermedia link parsers.

A :class:`LinkParser` recognises one linking convention (``Link`` headers,
HAL, JSON:API, ...) and returns the relations it finds in a
:class:`~restcli.client.response.ParsedResponse`. Targets may be relative;
the :class:`~restcli.links.engine.LinkResolver` makes them absolute and
merges the results of every registered parser.

A parser must return ``{}`` for a response shape it does not recognise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from restcli.models import Link, LinkMap

if TYPE_CHECKING:
    from restcli.client.response import ParsedResponse


class LinkParser(ABC):
    """Extract links for one hypermedia convention."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, e.g. ``"hal"``."""
        ...

    @abstractmethod
    def parse(self, response: ParsedResponse) -> LinkMap:
        """Return the relations found in *response*, in discovery order."""
        ...


def add_link(
    links: LinkMap,
    relation: Any,
    target: Any,
    *,
    templated: bool = False,
    title: Optional[str] = None,
) -> None:
    """Append a link to *links*, skipping empty or non-string values."""
    if not isinstance(relation, str) or not relation.strip():
        return
    if not isinstance(target, str) or not target:
        return
    if title is not None and not isinstance(title, str):
        title = str(title)
    links.setdefault(relation, []).append(
        Link(relation=relation, target=target, templated=templated, title=title)
    )
