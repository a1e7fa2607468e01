"""Tests for short address resolution."""

from __future__ import annotations

import pytest

from restcli.client import AddressResolver
from restcli.exceptions import InvalidUsageError
from restcli.models import APIEntry, PipelineSettings, ProfileConfig

APIS = {
    "petstore": APIEntry(
        name="petstore",
        base="https://petstore.example.com/v1",
        profiles={"staging": ProfileConfig(base="https://staging.petstore.example.com/v1")},
    ),
    "petstore-admin": APIEntry(name="petstore-admin", base="https://petstore.example.com/v1/admin"),
}


@pytest.fixture
def resolver() -> AddressResolver:
    return AddressResolver(APIS)


class TestResolve:
    @pytest.mark.parametrize(
        "address, expected",
        [
            ("https://example.com/items", "https://example.com/items"),
            ("http://example.com", "http://example.com"),
            (":8000/items", "http://localhost:8000/items"),
            ("example.com/items?x=1", "https://example.com/items?x=1"),
            ("petstore/pets?limit=5", "https://petstore.example.com/v1/pets?limit=5"),
            ("petstore", "https://petstore.example.com/v1"),
            ("  petstore/pets  ", "https://petstore.example.com/v1/pets"),
        ],
    )
    def test_addresses(self, resolver: AddressResolver, address: str, expected: str) -> None:
        assert resolver.resolve(address) == expected

    def test_empty_address(self, resolver: AddressResolver) -> None:
        with pytest.raises(InvalidUsageError):
            resolver.resolve("   ")

    def test_profile_base_override(self) -> None:
        resolver = AddressResolver(APIS, PipelineSettings(profile="staging"))
        assert resolver.resolve("petstore/pets") == "https://staging.petstore.example.com/v1/pets"

    def test_server_override_keeps_path(self) -> None:
        resolver = AddressResolver(APIS, PipelineSettings.from_flat({"server-override": "localhost:9000"}))
        assert resolver.resolve("petstore/pets?limit=1") == "https://localhost:9000/v1/pets?limit=1"
        assert resolver.resolve("http://example.com/a") == "https://localhost:9000/a"


class TestApiFor:
    def test_longest_base_wins(self, resolver: AddressResolver) -> None:
        assert resolver.api_for("https://petstore.example.com/v1/pets").name == "petstore"
        assert resolver.api_for("https://petstore.example.com/v1/admin/users").name == "petstore-admin"

    def test_base_must_end_at_segment(self, resolver: AddressResolver) -> None:
        assert resolver.api_for("https://petstore.example.com/v10/pets") is None
        assert resolver.api_for("https://petstore.example.com/v1?x=1").name == "petstore"

    def test_unknown_host(self, resolver: AddressResolver) -> None:
        assert resolver.api_for("https://other.example.com/v1/pets") is None

    def test_matches_override_server(self) -> None:
        resolver = AddressResolver(APIS, PipelineSettings.from_flat({"server-override": "http://127.0.0.1:8080"}))
        assert resolver.api_for("http://127.0.0.1:8080/v1/pets").name == "petstore"
