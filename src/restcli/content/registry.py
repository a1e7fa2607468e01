"""Content-type registry with quality-weighted negotiation.

The :class:`ContentTypeRegistry` maps MIME patterns to
:class:`~restcli.content.base.Codec` instances. It is used on both sides
of a request:

* **Outgoing** -- :meth:`~ContentTypeRegistry.build_accept_header` builds
  the ``Accept`` header and :meth:`~ContentTypeRegistry.select_for_request`
  picks the codec that marshals the request body.
* **Incoming** -- :meth:`~ContentTypeRegistry.select_for_response` picks
  the codec that unmarshals the response body from its ``Content-Type``.

Matching rules for a concrete media type (parameters such as ``charset``
are ignored, comparison is case-insensitive):

1. An exact pattern always wins, whatever its quality.
2. A structured-syntax suffix maps to its base type, so
   ``application/hal+json`` is handled by an ``application/json`` codec.
3. Otherwise the most specific matching wildcard wins (``text/*`` before
   ``*/*``); equally specific wildcards are ranked by quality, then by
   registration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from restcli.content.base import Codec
from restcli.exceptions import NoCodecError
from restcli.registry import FreezableRegistry


@dataclass(frozen=True)
class ContentTypeEntry:
    """A registered codec with its MIME pattern and preference weight."""

    pattern: str
    quality: float
    codec: Codec

    @property
    def is_wildcard(self) -> bool:
        return self.pattern.endswith("/*")

    @property
    def specificity(self) -> int:
        """2 for an exact type, 1 for ``type/*``, 0 for ``*/*``."""
        if not self.is_wildcard:
            return 2
        return 0 if self.pattern == "*/*" else 1

    def matches(self, media_type: str) -> bool:
        if not self.is_wildcard:
            return self.pattern == media_type
        if self.pattern == "*/*":
            return True
        return media_type.split("/", 1)[0] == self.pattern.split("/", 1)[0]


def media_type_of(content_type: str) -> str:
    """Strip parameters and normalise case: ``Text/HTML; charset=x`` -> ``text/html``."""
    return content_type.split(";", 1)[0].strip().lower()


def _format_quality(quality: float) -> str:
    return f"{quality:.3f}".rstrip("0").rstrip(".")


class ContentTypeRegistry(FreezableRegistry):
    """Ordered registry of content-type codecs.

    Keys are unique: registering an existing pattern replaces its entry in
    place so that the original registration order is kept for tie-breaks.

    Example::

        registry = ContentTypeRegistry()
        registry.register("application/json", 0.5, JSONCodec())
        registry.register("text/*", 0.2, TextCodec())
        registry.build_accept_header()
        # 'application/json, text/*;q=0.2'
    """

    _kind = "content type registry"

    def __init__(self) -> None:
        super().__init__()
        self._entries: list[ContentTypeEntry] = []

    def register(self, pattern: str, quality: float, codec: Codec) -> None:
        """Register *codec* for *pattern* with preference *quality*.

        Args:
            pattern: An exact MIME type or a ``type/*`` / ``*/*`` wildcard.
            quality: Preference weight in ``(0, 1]``.
            codec: The codec instance.

        Raises:
            ValueError: If *quality* is out of range or *pattern* is not a
                ``type/subtype`` string.
            RegistryFrozenError: If the registry has been frozen.
        """
        pattern = media_type_of(pattern)
        self._check_mutable(pattern)
        if not 0 < quality <= 1:
            raise ValueError(f"Quality for '{pattern}' must be in (0, 1], got {quality}")
        if "/" not in pattern:
            raise ValueError(f"Invalid content type pattern: '{pattern}'")
        if pattern.startswith("*/") and pattern != "*/*":
            raise ValueError(f"Invalid content type pattern: '{pattern}'")

        entry = ContentTypeEntry(pattern=pattern, quality=quality, codec=codec)
        for idx, existing in enumerate(self._entries):
            if existing.pattern == pattern:
                self._entries[idx] = entry
                return
        self._entries.append(entry)

    def entries(self) -> list[ContentTypeEntry]:
        """Return the registered entries in registration order."""
        return list(self._entries)

    def get(self, pattern: str) -> Optional[Codec]:
        """Return the codec registered under exactly *pattern*, if any."""
        pattern = media_type_of(pattern)
        for entry in self._entries:
            if entry.pattern == pattern:
                return entry.codec
        return None

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------ #
    # Negotiation
    # ------------------------------------------------------------------ #

    def ranked(self) -> list[ContentTypeEntry]:
        """Entries by descending quality; ties keep registration order."""
        return sorted(self._entries, key=lambda e: -e.quality)

    def build_accept_header(self) -> str:
        """Build the ``Accept`` header value.

        The top-ranked entry and entries with quality 1.0 carry no ``q=``
        parameter. Returns ``""`` when the only registered codec is the
        universal ``*/*`` one, meaning the header should be omitted.
        """
        if not self._entries:
            return ""
        if len(self._entries) == 1 and self._entries[0].pattern == "*/*":
            return ""

        parts: list[str] = []
        for idx, entry in enumerate(self.ranked()):
            if idx == 0 or entry.quality >= 1.0:
                parts.append(entry.pattern)
            else:
                parts.append(f"{entry.pattern};q={_format_quality(entry.quality)}")
        return ", ".join(parts)

    def select_for_response(self, content_type: str) -> Codec:
        """Select the codec for a response declaring *content_type*.

        Raises:
            NoCodecError: If nothing matches. Callers treat this as a soft
                failure and fall back to the raw bytes.
        """
        media_type = media_type_of(content_type or "")
        entry = self._match(media_type) if media_type else None
        if entry is None:
            raise NoCodecError(content_type or "(none)")
        return entry.codec

    def select_for_request(self, explicit_type: Optional[str] = None) -> tuple[str, Codec]:
        """Select the codec that marshals an outgoing body.

        Args:
            explicit_type: The content type the caller asked for, e.g. from
                a ``Content-Type`` header or an operation's declared body
                media type. When ``None``, the highest-quality exact
                (non-wildcard) codec is used, first registered on ties.

        Returns:
            ``(media_type, codec)`` where *media_type* is the value to send
            as the request ``Content-Type``.

        Raises:
            NoCodecError: If no codec can marshal the requested type.
        """
        if explicit_type:
            media_type = media_type_of(explicit_type)
            entry = self._match(media_type)
            if entry is None:
                raise NoCodecError(explicit_type)
            return explicit_type, entry.codec

        exact = [e for e in self.ranked() if not e.is_wildcard]
        if not exact:
            raise NoCodecError("(default)", "No exact content type registered for request bodies")
        return exact[0].pattern, exact[0].codec

    def _match(self, media_type: str) -> Optional[ContentTypeEntry]:
        for entry in self._entries:
            if not entry.is_wildcard and entry.pattern == media_type:
                return entry

        type_, _, subtype = media_type.partition("/")
        if "+" in subtype:
            base = f"{type_}/{subtype.rsplit('+', 1)[1]}"
            for entry in self._entries:
                if not entry.is_wildcard and entry.pattern == base:
                    return entry

        best: Optional[ContentTypeEntry] = None
        for entry in self._entries:
            if not entry.is_wildcard or not entry.matches(media_type):
                continue
            if best is None or (entry.specificity, entry.quality) > (best.specificity, best.quality):
                best = entry
        return best
