"""Tests for content-encoding negotiation and decoding."""

from __future__ import annotations

import gzip
import zlib

import pytest

from restcli.encoding import (
    DeflateEncoding,
    EncodingRegistry,
    GzipEncoding,
    register_default_encodings,
)
from restcli.exceptions import RegistryFrozenError

PAYLOAD = b'{"pets": ["Rex", "Fido"]}'


@pytest.fixture
def registry() -> EncodingRegistry:
    reg = EncodingRegistry()
    register_default_encodings(reg)
    return reg


class TestAcceptEncoding:
    def test_lists_names_in_registration_order(self, registry: EncodingRegistry) -> None:
        assert registry.build_accept_encoding_header() == "gzip, deflate"

    def test_empty_registry(self) -> None:
        assert EncodingRegistry().build_accept_encoding_header() == ""

    def test_names_are_case_insensitive(self, registry: EncodingRegistry) -> None:
        assert isinstance(registry.get("GZIP"), GzipEncoding)

    def test_frozen(self, registry: EncodingRegistry) -> None:
        registry.freeze()
        with pytest.raises(RegistryFrozenError):
            registry.register("br", GzipEncoding())


class TestDecode:
    def test_no_header_leaves_body(self, registry: EncodingRegistry) -> None:
        result = registry.decode(None, PAYLOAD)
        assert result.data == PAYLOAD
        assert result.warnings == []

    def test_identity_is_a_no_op(self, registry: EncodingRegistry) -> None:
        assert registry.decode("identity", PAYLOAD).data == PAYLOAD

    def test_gzip(self, registry: EncodingRegistry) -> None:
        result = registry.decode("gzip", gzip.compress(PAYLOAD))
        assert result.data == PAYLOAD
        assert result.applied == ["gzip"]

    def test_deflate_zlib_wrapped(self, registry: EncodingRegistry) -> None:
        assert registry.decode("deflate", zlib.compress(PAYLOAD)).data == PAYLOAD

    def test_deflate_raw_stream(self, registry: EncodingRegistry) -> None:
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        raw = compressor.compress(PAYLOAD) + compressor.flush()
        assert registry.decode("deflate", raw).data == PAYLOAD

    def test_stacked_encodings_undone_last_first(self, registry: EncodingRegistry) -> None:
        data = gzip.compress(zlib.compress(PAYLOAD))
        result = registry.decode("deflate, gzip", data)
        assert result.data == PAYLOAD
        assert result.applied == ["gzip", "deflate"]

    def test_unknown_token_warns_and_keeps_bytes(self, registry: EncodingRegistry) -> None:
        result = registry.decode("br", b"\x00\x01")
        assert result.data == b"\x00\x01"
        assert len(result.warnings) == 1
        assert "br" in result.warnings[0]

    def test_corrupt_stream_warns(self, registry: EncodingRegistry) -> None:
        result = registry.decode("gzip", b"definitely not gzip")
        assert result.data == b"definitely not gzip"
        assert "gzip" in result.warnings[0]


class TestCodecs:
    def test_gzip_round_trip(self) -> None:
        codec = GzipEncoding()
        assert codec.decompress(codec.compress(PAYLOAD)) == PAYLOAD

    def test_deflate_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="deflate"):
            DeflateEncoding().decompress(b"garbage")
