"""Pipeline assembly: registration, then an immutable context.

Registries are never global. A :class:`PipelineBuilder` owns one of each
(content types, encodings, auth handlers, link parsers, description
formats); built-in components and plugins register on it, and
:meth:`PipelineBuilder.build` freezes every registry and returns a
:class:`PipelineContext`. From then on the registries are read-only and
can be shared between threads; a late registration raises
:class:`~restcli.exceptions.RegistryFrozenError`.

Example::

    builder = default_builder()
    builder.register_content_type("application/msgpack", 0.8, MsgPackCodec())
    context = builder.build()
    context.content_types.build_accept_header()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from restcli.auth import AuthHandler, AuthRegistry
from restcli.content import Codec, ContentTypeRegistry, register_default_content_types
from restcli.encoding import EncodingCodec, EncodingRegistry, register_default_encodings
from restcli.links import LinkParser, LinkResolver, register_default_link_parsers
from restcli.parser.formats import DescriptionFormat, DescriptionFormatRegistry, OpenAPI3Format
from restcli.plugins.api_key import APIKeyAuth
from restcli.plugins.api_key_header import ShellAPIKeyHeaderAuth
from restcli.plugins.basic import HTTPBasicAuth
from restcli.plugins.bearer import BearerAuth


@dataclass(frozen=True)
class PipelineContext:
    """The frozen registries one pipeline runs with."""

    content_types: ContentTypeRegistry
    encodings: EncodingRegistry
    auth: AuthRegistry
    links: LinkResolver
    formats: DescriptionFormatRegistry


class PipelineBuilder:
    """Collects registrations until :meth:`build` is called."""

    def __init__(self) -> None:
        self.content_types = ContentTypeRegistry()
        self.encodings = EncodingRegistry()
        self.auth = AuthRegistry()
        self.links = LinkResolver()
        self.formats = DescriptionFormatRegistry()
        self._context: Optional[PipelineContext] = None

    def register_content_type(self, pattern: str, quality: float, codec: Codec) -> None:
        self.content_types.register(pattern, quality, codec)

    def register_encoding(self, name: str, codec: EncodingCodec) -> None:
        self.encodings.register(name, codec)

    def register_auth(self, scheme: str, handler: AuthHandler) -> None:
        self.auth.register(scheme, handler)

    def register_link_parser(self, parser: LinkParser) -> None:
        self.links.register(parser)

    def register_description_format(self, fmt: DescriptionFormat) -> None:
        self.formats.register(fmt)

    @property
    def built(self) -> bool:
        return self._context is not None

    def build(self) -> PipelineContext:
        """Freeze every registry and return the context.

        Calling it again returns the same context.
        """
        if self._context is None:
            for registry in (self.content_types, self.encodings, self.auth, self.links, self.formats):
                registry.freeze()
            self._context = PipelineContext(
                content_types=self.content_types,
                encodings=self.encodings,
                auth=self.auth,
                links=self.links,
                formats=self.formats,
            )
        return self._context


def register_defaults(builder: PipelineBuilder) -> None:
    """Register the built-in codecs, encodings, auth handlers, parsers and formats."""
    register_default_content_types(builder.content_types)
    register_default_encodings(builder.encodings)
    builder.register_auth("http-basic", HTTPBasicAuth())
    builder.register_auth("api-key-header", ShellAPIKeyHeaderAuth())
    builder.register_auth("bearer", BearerAuth())
    builder.register_auth("api-key", APIKeyAuth())
    register_default_link_parsers(builder.links)
    builder.register_description_format(OpenAPI3Format())


def default_builder() -> PipelineBuilder:
    """A builder with the defaults already registered."""
    builder = PipelineBuilder()
    register_defaults(builder)
    return builder
