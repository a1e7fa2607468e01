"""Built-in content type codecs: JSON, CBOR, YAML and text.

Each codec raises :class:`ValueError` on malformed input so that the
pipeline can fall back to raw bytes without caring which library failed.
"""

from __future__ import annotations

import json
from typing import Any

import cbor2
import yaml

from restcli.content.base import Codec


class JSONCodec(Codec):
    """``application/json`` via the standard library."""

    def marshal(self, value: Any) -> bytes:
        return json.dumps(value, ensure_ascii=False).encode("utf-8")

    def unmarshal(self, data: bytes) -> Any:
        if not data.strip():
            return None
        try:
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError(f"Invalid JSON: {exc}") from exc


class CBORCodec(Codec):
    """``application/cbor`` (RFC 8949) via :mod:`cbor2`."""

    def marshal(self, value: Any) -> bytes:
        try:
            return cbor2.dumps(value)
        except cbor2.CBOREncodeError as exc:
            raise ValueError(f"Cannot encode CBOR: {exc}") from exc

    def unmarshal(self, data: bytes) -> Any:
        if not data:
            return None
        try:
            return cbor2.loads(data)
        except cbor2.CBORDecodeError as exc:
            raise ValueError(f"Invalid CBOR: {exc}") from exc


class YAMLCodec(Codec):
    """``application/yaml`` via PyYAML's safe loader and dumper."""

    def marshal(self, value: Any) -> bytes:
        return yaml.safe_dump(value, sort_keys=False, allow_unicode=True).encode("utf-8")

    def unmarshal(self, data: bytes) -> Any:
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML: {exc}") from exc


class TextCodec(Codec):
    """Any ``text/*`` type, decoded as UTF-8 with replacement characters."""

    def marshal(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def unmarshal(self, data: bytes) -> Any:
        return data.decode("utf-8", errors="replace")
