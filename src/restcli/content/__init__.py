"""Content-type codecs and the negotiation registry.

Typical usage::

    from restcli.content import ContentTypeRegistry, register_default_content_types

    registry = ContentTypeRegistry()
    register_default_content_types(registry)
    accept = registry.build_accept_header()
    value = registry.select_for_response("application/hal+json").unmarshal(raw)

Sub-modules:

* :mod:`~restcli.content.base` -- the :class:`Codec` interface.
* :mod:`~restcli.content.codecs` -- JSON, CBOR, YAML and text codecs.
* :mod:`~restcli.content.registry` -- :class:`ContentTypeRegistry`.
"""

from restcli.content.base import Codec
from restcli.content.codecs import CBORCodec, JSONCodec, TextCodec, YAMLCodec
from restcli.content.registry import ContentTypeEntry, ContentTypeRegistry, media_type_of


def register_default_content_types(registry: ContentTypeRegistry) -> None:
    """Register the built-in codecs.

    JSON is preferred, CBOR next, YAML after that, and any ``text/*`` type
    is accepted last as plain text.
    """
    yaml_codec = YAMLCodec()
    registry.register("application/json", 1.0, JSONCodec())
    registry.register("application/cbor", 0.9, CBORCodec())
    registry.register("application/yaml", 0.5, yaml_codec)
    registry.register("application/x-yaml", 0.5, yaml_codec)
    registry.register("text/*", 0.2, TextCodec())


__all__ = [
    "Codec",
    "CBORCodec",
    "JSONCodec",
    "TextCodec",
    "YAMLCodec",
    "ContentTypeEntry",
    "ContentTypeRegistry",
    "media_type_of",
    "register_default_content_types",
]
