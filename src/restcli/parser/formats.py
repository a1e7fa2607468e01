"""Pluggable API description formats.

A :class:`DescriptionFormat` recognises one kind of description document
and turns it into operations. The :class:`DescriptionFormatRegistry` tries
the registered formats in order and uses the first that claims the
document. OpenAPI 3.x is built in; Swagger 2.0 documents are recognised
and rejected with a clear message rather than misparsed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Collection, Optional

from restcli.exceptions import DescriptionParseError
from restcli.models import Operation
from restcli.parser.extractor import extract_operations
from restcli.parser.resolver import RefResolver
from restcli.registry import FreezableRegistry


@dataclass
class ParsedDescription:
    """What a format extracted from one document."""

    operations: list[Operation] = field(default_factory=list)
    title: Optional[str] = None
    version: Optional[str] = None


class DescriptionFormat(ABC):
    """One API description format, such as OpenAPI 3."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def detect(self, document: dict[str, Any]) -> bool:
        """Return True when *document* is in this format."""
        ...

    @abstractmethod
    def parse(
        self,
        document: dict[str, Any],
        location: str,
        auth_schemes: Collection[str] = (),
    ) -> ParsedDescription:
        """Extract operations from *document*.

        Raises:
            DescriptionParseError: If the document is malformed.
        """
        ...


class OpenAPI3Format(DescriptionFormat):
    """OpenAPI 3.0 and 3.1 documents."""

    @property
    def name(self) -> str:
        return "openapi3"

    def detect(self, document: dict[str, Any]) -> bool:
        return str(document.get("openapi", "")).startswith("3.")

    def parse(
        self,
        document: dict[str, Any],
        location: str,
        auth_schemes: Collection[str] = (),
    ) -> ParsedDescription:
        if not isinstance(document.get("paths", {}), dict):
            raise DescriptionParseError("'paths' must be an object", location)
        info = document.get("info") if isinstance(document.get("info"), dict) else {}
        resolver = RefResolver(document, location)
        try:
            operations = extract_operations(document, resolver, auth_schemes)
        except ValueError as exc:
            raise DescriptionParseError(f"Invalid operation: {exc}", location) from exc
        except (TypeError, AttributeError, KeyError) as exc:
            raise DescriptionParseError(f"Unexpected value in document: {exc}", location) from exc
        return ParsedDescription(
            operations=operations,
            title=info.get("title"),
            version=str(info["version"]) if "version" in info else None,
        )


class DescriptionFormatRegistry(FreezableRegistry):
    """Ordered registry of :class:`DescriptionFormat` variants."""

    _kind = "description format registry"

    def __init__(self) -> None:
        super().__init__()
        self._formats: dict[str, DescriptionFormat] = {}

    def register(self, fmt: DescriptionFormat) -> None:
        self._check_mutable(fmt.name)
        self._formats[fmt.name] = fmt

    def names(self) -> list[str]:
        return list(self._formats)

    def parse(
        self,
        document: Any,
        location: str,
        auth_schemes: Collection[str] = (),
    ) -> ParsedDescription:
        """Parse *document* with the first format that detects it.

        Raises:
            DescriptionParseError: For non-object documents, Swagger 2.0, or
                when no registered format recognises the document.
        """
        if not isinstance(document, dict):
            raise DescriptionParseError(
                f"API description must be an object, got {type(document).__name__}", location
            )
        if "swagger" in document:
            raise DescriptionParseError(
                f"Swagger {document['swagger']} is not supported; "
                "only OpenAPI 3.x descriptions can be loaded",
                location,
            )
        for fmt in self._formats.values():
            if fmt.detect(document):
                return fmt.parse(document, location, auth_schemes)
        raise DescriptionParseError("Unrecognised API description format", location)
