"""Content-encoding codecs and registry.

* :mod:`~restcli.encoding.base` -- the :class:`EncodingCodec` interface.
* :mod:`~restcli.encoding.codecs` -- ``gzip`` and ``deflate``.
* :mod:`~restcli.encoding.registry` -- :class:`EncodingRegistry` and
  :class:`DecodeResult`.
"""

from restcli.encoding.base import EncodingCodec
from restcli.encoding.codecs import DeflateEncoding, GzipEncoding
from restcli.encoding.registry import DecodeResult, EncodingRegistry


def register_default_encodings(registry: EncodingRegistry) -> None:
    """Register ``gzip`` then ``deflate``."""
    registry.register("gzip", GzipEncoding())
    registry.register("deflate", DeflateEncoding())


__all__ = [
    "DecodeResult",
    "DeflateEncoding",
    "EncodingCodec",
    "EncodingRegistry",
    "GzipEncoding",
    "register_default_encodings",
]
