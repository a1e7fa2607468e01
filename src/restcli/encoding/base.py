"""Abstract interface for HTTP content-encoding codecs.

An :class:`EncodingCodec` reverses (and applies) one ``Content-Encoding``
token such as ``gzip``. Codecs are registered by name in the
:class:`~restcli.encoding.registry.EncodingRegistry`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EncodingCodec(ABC):
    """Compress and decompress bytes for one content-encoding token."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The ``Content-Encoding`` token this codec handles, e.g. ``"gzip"``."""
        ...

    @abstractmethod
    def compress(self, data: bytes) -> bytes:
        ...

    @abstractmethod
    def decompress(self, data: bytes) -> bytes:
        """Undo this encoding.

        Raises:
            ValueError: If *data* is not valid for this encoding.
        """
        ...
