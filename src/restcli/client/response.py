"""The parsed response that flows from the pipeline to links and output.

:class:`ParsedResponse` holds one HTTP exchange after content-encoding has
been undone and the body unmarshalled. Link parsers read it, and
:meth:`ParsedResponse.normalized` gives the formatter its
``{status, headers, body, links}`` view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from restcli.models import LinkMap


@dataclass
class ParsedResponse:
    """One decoded and unmarshalled HTTP response.

    Attributes:
        method: Request method, upper case.
        url: Effective URL after redirects; relative links resolve against it.
        status: HTTP status code.
        reason: Reason phrase, possibly empty.
        headers: Response headers.
        raw: Body bytes with content-encoding removed.
        body: Unmarshalled body, or the raw text/bytes when no codec applied.
        content_type: The response ``Content-Type`` header value.
        links: Relations found by the link engine.
        warnings: Soft problems (unknown encoding or content type, bad body).
        from_cache: True when served from the response cache.
    """

    method: str
    url: str
    status: int
    headers: httpx.Headers
    raw: bytes = b""
    body: Any = None
    reason: str = ""
    content_type: str = ""
    links: LinkMap = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    def link(self, relation: str) -> str | None:
        """Target of the first link with *relation*, if any."""
        found = self.links.get(relation)
        return found[0].target if found else None

    def normalized(self) -> dict[str, Any]:
        """Return the formatter view: ``{status, headers, body, links}``."""
        return {
            "status": self.status,
            "headers": {_canonical(k): v for k, v in self.headers.items()},
            "body": self.body,
            "links": {
                rel: [link.model_dump(exclude_defaults=True) for link in links]
                for rel, links in self.links.items()
            },
        }


def _canonical(name: str) -> str:
    return "-".join(part.capitalize() for part in name.split("-"))
