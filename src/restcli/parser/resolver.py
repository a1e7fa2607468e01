"""Lazy ``$ref`` resolution for API description documents.

OpenAPI documents use JSON References (``{"$ref": "#/components/schemas/Pet"}``)
to avoid repetition. Operation synthesis only ever needs a handful of
referenced objects (path items, parameters, request bodies, security
schemes), so instead of deep-copying and expanding the whole document the
:class:`RefResolver` follows references on demand.

Only internal references (``#/...``) are supported. An external reference,
a dangling pointer or a reference cycle raises
:class:`~restcli.exceptions.DescriptionParseError` naming the document
location.
"""

from __future__ import annotations

from typing import Any, Optional

from restcli.exceptions import DescriptionParseError

_MAX_CHAIN = 32


def unescape_pointer_segment(segment: str) -> str:
    """Undo RFC 6901 escaping: ``~1`` -> ``/`` then ``~0`` -> ``~``."""
    return segment.replace("~1", "/").replace("~0", "~")


class RefResolver:
    """Follow ``$ref`` pointers inside one document.

    Args:
        document: The parsed root document.
        location: Where the document came from, used in error messages.

    Example::

        resolver = RefResolver(doc, "https://api.example.com/openapi.json")
        param = resolver.deref({"$ref": "#/components/parameters/limit"})
    """

    def __init__(self, document: dict[str, Any], location: Optional[str] = None) -> None:
        self._document = document
        self._location = location

    def lookup(self, ref: str) -> Any:
        """Return the value a ``#/...`` pointer designates.

        Raises:
            DescriptionParseError: For external or unresolvable references.
        """
        if ref == "#":
            return self._document
        if not ref.startswith("#/"):
            raise DescriptionParseError(
                f"External $ref not supported: {ref}", self._location
            )

        current: Any = self._document
        for raw_segment in ref[2:].split("/"):
            segment = unescape_pointer_segment(raw_segment)
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
                current = current[int(segment)]
            else:
                raise DescriptionParseError(
                    f"Cannot resolve $ref '{ref}': '{segment}' not found", self._location
                )
        return current

    def deref(self, node: Any) -> Any:
        """Follow a chain of ``$ref`` objects until a concrete value is reached.

        Only the top level of *node* is resolved; nested references are left
        for the caller to dereference when it needs them.

        Raises:
            DescriptionParseError: On cycles, external or dangling references.
        """
        seen: list[str] = []
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            if ref in seen or len(seen) >= _MAX_CHAIN:
                chain = " -> ".join(seen + [ref])
                raise DescriptionParseError(f"Circular $ref chain: {chain}", self._location)
            seen.append(ref)
            node = self.lookup(ref)
        return node

    @staticmethod
    def ref_of(node: Any) -> Optional[str]:
        """The ``$ref`` string of *node* if it is a reference object."""
        if isinstance(node, dict) and isinstance(node.get("$ref"), str):
            return node["$ref"]
        return None
