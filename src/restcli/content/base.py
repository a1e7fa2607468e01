"""Abstract codec interface for content types.

A :class:`Codec` turns a Python value into bytes for an outgoing request
body and parses response bytes back into a value. Codecs are registered
against a MIME pattern in the
:class:`~restcli.content.registry.ContentTypeRegistry`.

To support a new wire format, subclass :class:`Codec`, implement
:meth:`~Codec.marshal` and :meth:`~Codec.unmarshal`, and register it from
a plugin or through :class:`~restcli.client.context.PipelineBuilder`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Codec(ABC):
    """Marshal and unmarshal values for one family of content types."""

    @abstractmethod
    def marshal(self, value: Any) -> bytes:
        """Serialise *value* to bytes.

        Raises:
            ValueError: If *value* cannot be represented in this format.
        """
        ...

    @abstractmethod
    def unmarshal(self, data: bytes) -> Any:
        """Parse *data* into a Python value.

        Raises:
            ValueError: If *data* is not valid in this format.
        """
        ...
