"""Tests for locating, fetching, caching and registering API descriptions."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

import click
import httpx
import pytest
import yaml

from restcli.cache import DescriptionCache
from restcli.client import HttpxTransport, PipelineContext
from restcli.exceptions import (
    ConfigError,
    DescriptionFetchError,
    DescriptionParseError,
)
from restcli.models import APIEntry, Operation
from restcli.parser.loader import APIDescriptionLoader, format_hint, parse_document

BASE = "https://petstore.example.com/v1"
SPEC_URL = f"{BASE}/openapi.json"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class MemoryStore:
    """Dict-backed stand-in for the disk store."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.flushed = False

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any, expire: Optional[float] = None) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def flush(self) -> None:
        self.flushed = True


class RecordingSlot:
    def __init__(self) -> None:
        self.names: list[str] = []

    def register_command(self, name: str, operation: Operation) -> click.Command:
        self.names.append(name)
        return click.Command(name)


class Clock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class Server:
    """Mock HTTP server recording every request it answers."""

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        handler = self.routes.get(url)
        if handler is None:
            return httpx.Response(404, stream=httpx.ByteStream(b"not found"))
        return handler(request)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def _document(text: str, content_type: str = "application/json", **headers: str) -> Callable:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Type": content_type, **headers},
            stream=httpx.ByteStream(text.encode("utf-8")),
        )

    return handler


def _loader(
    context: PipelineContext,
    server: Server,
    apis: dict[str, APIEntry],
    *,
    store: Optional[MemoryStore] = None,
    clock: Optional[Clock] = None,
) -> APIDescriptionLoader:
    transport = HttpxTransport(transport=httpx.MockTransport(server))
    return APIDescriptionLoader(
        context,
        transport,
        DescriptionCache(store or MemoryStore()),
        apis,
        ttl=3600,
        clock=clock or Clock(),
    )


@pytest.fixture
def explicit_api() -> dict[str, APIEntry]:
    return {"petstore": APIEntry(name="petstore", base=BASE, spec_files=[SPEC_URL])}


@pytest.fixture
def discovered_api() -> dict[str, APIEntry]:
    return {"petstore": APIEntry(name="petstore", base=BASE)}


# ---------------------------------------------------------------------------
# Document parsing
# ---------------------------------------------------------------------------


class TestParseDocument:
    def test_json(self) -> None:
        assert parse_document('{"openapi": "3.0.0"}') == {"openapi": "3.0.0"}

    def test_yaml_fallback(self) -> None:
        assert parse_document("openapi: 3.0.0\npaths: {}\n") == {"openapi": "3.0.0", "paths": {}}

    def test_empty(self) -> None:
        with pytest.raises(DescriptionParseError, match="empty"):
            parse_document("  ", location="spec.json")

    def test_json_hint_is_strict(self) -> None:
        with pytest.raises(DescriptionParseError, match="Invalid JSON"):
            parse_document("openapi: 3.0.0", hint="json")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(DescriptionParseError):
            parse_document("key: [unclosed", hint="yaml")

    @pytest.mark.parametrize(
        "location, content_type, expected",
        [
            ("https://x/spec", "application/openapi+json", "json"),
            ("https://x/spec", "application/yaml", "yaml"),
            ("https://x/spec.yml?v=2", "", "yaml"),
            ("/tmp/spec.json", "", "json"),
            ("https://x/spec", "text/plain", ""),
        ],
    )
    def test_format_hint(self, location: str, content_type: str, expected: str) -> None:
        assert format_hint(location, content_type) == expected


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoad:
    def test_explicit_location(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        server = Server({SPEC_URL: _document(petstore_text)})
        slot = RecordingSlot()
        config = _loader(context, server, explicit_api).load("petstore", slot)

        assert config.profile == "petstore:default"
        assert config.base_url == BASE
        assert config.description_location == SPEC_URL
        assert config.title == "Swagger Petstore"
        assert slot.names == [
            "list-pets",
            "create-pet",
            "show-pet-by-id",
            "delete-pet",
            "get-store-inventory",
        ]
        assert server.requests[0].headers["Accept"].startswith("application/openapi+json")

    def test_unknown_api(self, context: PipelineContext) -> None:
        with pytest.raises(ConfigError, match="not configured"):
            _loader(context, Server({}), {}).load("nope")

    def test_memoised_within_loader(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        server = Server({SPEC_URL: _document(petstore_text)})
        loader = _loader(context, server, explicit_api)
        first = loader.load("petstore")
        assert loader.load("petstore") is first
        assert len(server.requests) == 1

    def test_fresh_cache_skips_network(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        store = MemoryStore()
        server = Server({SPEC_URL: _document(petstore_text)})
        _loader(context, server, explicit_api, store=store).load("petstore")
        config = _loader(context, server, explicit_api, store=store).load("petstore")
        assert len(server.requests) == 1
        assert len(config.operations) == 5

    def test_stale_entry_revalidated_with_etag(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        store = MemoryStore()
        clock = Clock()
        first = Server({SPEC_URL: _document(petstore_text, ETag='"v1"')})
        _loader(context, first, explicit_api, store=store, clock=clock).load("petstore")

        clock.now += 7200
        not_modified = Server({SPEC_URL: lambda request: httpx.Response(304)})
        config = _loader(context, not_modified, explicit_api, store=store, clock=clock).load(
            "petstore"
        )

        assert not_modified.requests[0].headers["If-None-Match"] == '"v1"'
        assert len(config.operations) == 5
        cached = DescriptionCache(store).get("petstore:default")
        assert cached is not None
        assert cached.expires_at == clock.now + 3600

    def test_refresh_ignores_cache(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        server = Server({SPEC_URL: _document(petstore_text, ETag='"v1"')})
        loader = _loader(context, server, explicit_api)
        loader.load("petstore")
        loader.load("petstore", refresh=True)
        assert len(server.requests) == 2
        assert "If-None-Match" not in server.requests[1].headers

    def test_invalidate(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        store = MemoryStore()
        server = Server({SPEC_URL: _document(petstore_text)})
        loader = _loader(context, server, explicit_api, store=store)
        loader.load("petstore")
        loader.invalidate("petstore")
        assert store.data == {}
        loader.load("petstore")
        assert len(server.requests) == 2

    def test_http_error(self, context: PipelineContext, explicit_api: dict[str, APIEntry]) -> None:
        with pytest.raises(DescriptionFetchError, match="HTTP 404"):
            _loader(context, Server({}), explicit_api).load("petstore")

    def test_malformed_document(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry]
    ) -> None:
        server = Server({SPEC_URL: _document('{"swagger": "2.0"}')})
        with pytest.raises(DescriptionParseError, match="Swagger"):
            _loader(context, server, explicit_api).load("petstore")

    def test_local_file(
        self, context: PipelineContext, tmp_path: Path, petstore_raw: dict[str, Any]
    ) -> None:
        spec = tmp_path / "petstore.yaml"
        spec.write_text(yaml.safe_dump(petstore_raw))
        apis = {"petstore": APIEntry(name="petstore", base=BASE, spec_files=[str(spec)])}
        server = Server({})
        config = _loader(context, server, apis).load("petstore")
        assert config.description_location == str(spec)
        assert len(config.operations) == 5
        assert server.requests == []

    def test_relative_location_resolved_against_base(
        self, context: PipelineContext, petstore_text: str
    ) -> None:
        apis = {"petstore": APIEntry(name="petstore", base=BASE, spec_files=["docs/openapi.json"])}
        server = Server({f"{BASE}/docs/openapi.json": _document(petstore_text)})
        config = _loader(context, server, apis).load("petstore")
        assert config.description_location == f"{BASE}/docs/openapi.json"

    def test_duplicate_operation_names_keep_first(self, context: PipelineContext) -> None:
        document = {
            "openapi": "3.0.0",
            "paths": {
                "/a": {"get": {"operationId": "fetchThing"}},
                "/b": {"get": {"operationId": "fetch_thing"}},
            },
        }
        apis = {"petstore": APIEntry(name="petstore", base=BASE, spec_files=[SPEC_URL])}
        server = Server({SPEC_URL: _document(json.dumps(document))})
        slot = RecordingSlot()
        config = _loader(context, server, apis).load("petstore", slot)
        assert slot.names == ["fetch-thing"]
        assert len(config.operations) == 2

    @pytest.mark.parametrize(
        ("path_item", "components"),
        [
            ({"parameters": 5, "get": {"operationId": "a"}}, {}),
            ({"get": {"operationId": "a", "parameters": {"name": "x"}}}, {}),
            ({"get": {"operationId": "a", "security": [{"key": []}]}}, {"securitySchemes": ["key"]}),
        ],
        ids=["path-parameters", "operation-parameters", "security-schemes"],
    )
    def test_wrongly_typed_document_is_parse_error(
        self,
        context: PipelineContext,
        explicit_api: dict[str, APIEntry],
        path_item: dict[str, Any],
        components: dict[str, Any],
    ) -> None:
        document = {"openapi": "3.0.0", "components": components, "paths": {"/a": path_item}}
        server = Server({SPEC_URL: _document(json.dumps(document))})
        with pytest.raises(DescriptionParseError) as exc_info:
            _loader(context, server, explicit_api).load("petstore")
        assert exc_info.value.exit_code == 7
        assert SPEC_URL in str(exc_info.value)

    def test_unparseable_document_is_not_cached(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        store = MemoryStore()
        broken = Server({SPEC_URL: _document('{"openapi": "3.0.0", "paths": []}')})
        with pytest.raises(DescriptionParseError):
            _loader(context, broken, explicit_api, store=store).load("petstore")
        assert store.data == {}

        fixed = Server({SPEC_URL: _document(petstore_text)})
        config = _loader(context, fixed, explicit_api, store=store).load("petstore")
        assert len(fixed.requests) == 1
        assert len(config.operations) == 5
        assert DescriptionCache(store).get("petstore:default") is not None

    def test_concurrent_loads_fetch_once(
        self, context: PipelineContext, explicit_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        serve = _document(petstore_text)

        def slow(request: httpx.Request) -> httpx.Response:
            time.sleep(0.2)
            return serve(request)

        server = Server({SPEC_URL: slow})
        loader = _loader(context, server, explicit_api)
        results: list[Any] = []
        errors: list[BaseException] = []

        def worker() -> None:
            try:
                results.append(loader.load("petstore"))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert len(results) == 8
        assert all(config is results[0] for config in results)
        assert len(server.requests) == 1


class TestDiscovery:
    def test_link_header_service_desc(
        self, context: PipelineContext, discovered_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        def root(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Link": '</v1/meta/spec>; rel="service-desc"'},
                stream=httpx.ByteStream(b"{}"),
            )

        server = Server({BASE: root, f"{BASE}/meta/spec": _document(petstore_text)})
        config = _loader(context, server, discovered_api).load("petstore")
        assert config.description_location == f"{BASE}/meta/spec"
        assert server.paths() == ["/v1", "/v1/meta/spec"]

    def test_well_known_paths(
        self, context: PipelineContext, discovered_api: dict[str, APIEntry], petstore_raw: dict[str, Any]
    ) -> None:
        server = Server(
            {f"{BASE}/openapi.yaml": _document(yaml.safe_dump(petstore_raw), "application/yaml")}
        )
        config = _loader(context, server, discovered_api).load("petstore")
        assert config.description_location == f"{BASE}/openapi.yaml"
        assert server.paths() == ["/v1", "/v1/openapi.json", "/v1/openapi.yaml"]

    def test_stale_discovered_location_reused(
        self, context: PipelineContext, discovered_api: dict[str, APIEntry], petstore_text: str
    ) -> None:
        store = MemoryStore()
        clock = Clock()
        server = Server({f"{BASE}/openapi.json": _document(petstore_text)})
        _loader(context, server, discovered_api, store=store, clock=clock).load("petstore")

        clock.now += 7200
        again = Server({f"{BASE}/openapi.json": _document(petstore_text)})
        _loader(context, again, discovered_api, store=store, clock=clock).load("petstore")
        assert again.paths() == ["/v1/openapi.json"]

    def test_nothing_found(
        self, context: PipelineContext, discovered_api: dict[str, APIEntry]
    ) -> None:
        with pytest.raises(DescriptionFetchError, match="no API description found"):
            _loader(context, Server({}), discovered_api).load("petstore")
