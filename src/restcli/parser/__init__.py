"""API description parsing -- resolve ``$ref`` pointers and extract operations.

Typical usage::

    from restcli.parser import DescriptionFormatRegistry, OpenAPI3Format

    formats = DescriptionFormatRegistry()
    formats.register(OpenAPI3Format())
    parsed = formats.parse(document, "https://api.example.com/openapi.json")

Sub-modules:

* :mod:`~restcli.parser.resolver` -- JSON Pointer ``$ref`` lookup with
  cycle detection.
* :mod:`~restcli.parser.extractor` -- Walks ``paths`` and produces
  :class:`~restcli.models.Operation` objects.
* :mod:`~restcli.parser.formats` -- The pluggable
  :class:`DescriptionFormat` variants and their registry.
* :mod:`~restcli.parser.loader` -- Discovery, conditional fetching and
  caching of description documents. Import it directly; it depends on
  :mod:`restcli.client`.
"""

from restcli.parser.extractor import extract_operations, slugify
from restcli.parser.formats import (
    DescriptionFormat,
    DescriptionFormatRegistry,
    OpenAPI3Format,
    ParsedDescription,
)
from restcli.parser.resolver import RefResolver

__all__ = [
    "extract_operations",
    "slugify",
    "DescriptionFormat",
    "DescriptionFormatRegistry",
    "OpenAPI3Format",
    "ParsedDescription",
    "RefResolver",
]
