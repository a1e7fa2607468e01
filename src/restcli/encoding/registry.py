"""Content-encoding registry.

The :class:`EncodingRegistry` advertises the registered encodings in the
``Accept-Encoding`` header and undoes the ``Content-Encoding`` of response
bodies. Decoding never fails: an unknown token or a corrupt stream is
reported as a warning on the :class:`DecodeResult` and the bytes are left
as they were at that step, so the caller can still show something.

When a response lists several encodings (``Content-Encoding: deflate, gzip``)
they were applied in the listed order, so they are undone from last to
first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from restcli.encoding.base import EncodingCodec
from restcli.registry import FreezableRegistry

logger = logging.getLogger(__name__)


@dataclass
class DecodeResult:
    """Decoded bytes plus any soft warnings raised while decoding."""

    data: bytes
    warnings: list[str] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)


class EncodingRegistry(FreezableRegistry):
    """Ordered, name-keyed registry of :class:`EncodingCodec` instances."""

    _kind = "encoding registry"

    def __init__(self) -> None:
        super().__init__()
        self._codecs: dict[str, EncodingCodec] = {}

    def register(self, name: str, codec: EncodingCodec) -> None:
        """Register *codec* under *name*, replacing any previous codec in place."""
        name = name.strip().lower()
        self._check_mutable(name)
        if not name:
            raise ValueError("Encoding name must not be empty")
        self._codecs[name] = codec

    def get(self, name: str) -> Optional[EncodingCodec]:
        return self._codecs.get(name.strip().lower())

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._codecs)

    def build_accept_encoding_header(self) -> str:
        """Comma-joined registered names, e.g. ``"gzip, deflate"``."""
        return ", ".join(self._codecs)

    def decode(self, content_encoding: Optional[str], data: bytes) -> DecodeResult:
        """Undo the encodings named in a ``Content-Encoding`` header.

        Args:
            content_encoding: The raw header value; ``None`` or empty means
                the body is not encoded.
            data: The body bytes exactly as received.

        Returns:
            A :class:`DecodeResult`. Its ``warnings`` list is empty when
            every token was understood and decoded cleanly.
        """
        result = DecodeResult(data=data)
        if not content_encoding:
            return result

        tokens = [t.strip().lower() for t in content_encoding.split(",")]
        for token in reversed(tokens):
            if not token or token == "identity":
                continue
            codec = self._codecs.get(token)
            if codec is None:
                message = f"Unsupported content encoding '{token}'; body left encoded"
                logger.warning(message)
                result.warnings.append(message)
                continue
            try:
                result.data = codec.decompress(result.data)
            except ValueError as exc:
                message = f"Could not decode '{token}' content: {exc}"
                logger.warning(message)
                result.warnings.append(message)
                continue
            result.applied.append(token)
        return result
