"""Built-in content encodings backed by the standard library."""

from __future__ import annotations

import gzip
import zlib

from restcli.encoding.base import EncodingCodec


class GzipEncoding(EncodingCodec):
    """``gzip`` (RFC 1952)."""

    @property
    def name(self) -> str:
        return "gzip"

    def compress(self, data: bytes) -> bytes:
        return gzip.compress(data)

    def decompress(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise ValueError(f"Invalid gzip data: {exc}") from exc


class DeflateEncoding(EncodingCodec):
    """``deflate``: zlib-wrapped (RFC 1950), with a raw-deflate fallback.

    Some servers send raw RFC 1951 streams under this token, so both forms
    are accepted when decoding.
    """

    @property
    def name(self) -> str:
        return "deflate"

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data)

    def decompress(self, data: bytes) -> bytes:
        try:
            return zlib.decompress(data)
        except zlib.error:
            return _inflate_raw(data)


def _inflate_raw(data: bytes) -> bytes:
    try:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as exc:
        raise ValueError(f"Invalid deflate data: {exc}") from exc
