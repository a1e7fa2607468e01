"""Tests for the response cache, the disk store and the description cache."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from restcli.cache import DescriptionCache, DiskStore, ResponseCache, cache_lifetime
from restcli.models import CacheConfig, CachedDescription

URL = "https://api.example.com/pets"


def _headers(**values: str) -> httpx.Headers:
    return httpx.Headers({k.replace("_", "-"): v for k, v in values.items()})


class TestCacheLifetime:
    @pytest.mark.parametrize(
        "cache_control, expected",
        [
            ("max-age=60", 60),
            ("public, max-age=60", 60),
            ("s-maxage=30", 0),
            ("max-age=9999", 300),
            ("no-store, max-age=60", 0),
            ("private, max-age=60", 0),
            ("no-cache", 0),
            ("max-age=0", 0),
        ],
    )
    def test_directives(self, cache_control: str, expected: int) -> None:
        assert cache_lifetime(_headers(cache_control=cache_control), 300) == expected

    def test_no_header_means_no_caching(self) -> None:
        assert cache_lifetime(httpx.Headers(), 300) == 0


class TestResponseCache:
    @pytest.fixture
    def cache(self, tmp_path: Path) -> ResponseCache:
        cache = ResponseCache(tmp_path, CacheConfig(ttl_seconds=300))
        yield cache
        cache.close()

    def test_store_and_hit(self, cache: ResponseCache) -> None:
        headers = _headers(cache_control="max-age=60", content_type="application/json")
        assert cache.set("GET", URL, "petstore:default", 200, headers, b"[]", reason="OK")
        entry = cache.get("GET", URL, "petstore:default")
        assert entry is not None
        assert entry["status"] == 200
        assert entry["content"] == b"[]"
        assert ("content-type", "application/json") in entry["headers"]

    def test_encoding_headers_not_stored(self, cache: ResponseCache) -> None:
        headers = _headers(cache_control="max-age=60", content_encoding="gzip", content_length="2")
        cache.set("GET", URL, "", 200, headers, b"[]")
        names = [name for name, _ in cache.get("GET", URL, "")["headers"]]
        assert "content-encoding" not in names
        assert "content-length" not in names

    def test_profiles_do_not_share_entries(self, cache: ResponseCache) -> None:
        cache.set("GET", URL, "petstore:default", 200, _headers(cache_control="max-age=60"), b"1")
        assert cache.get("GET", URL, "petstore:admin") is None

    def test_uncacheable_responses_skipped(self, cache: ResponseCache) -> None:
        assert not cache.set("GET", URL, "", 200, httpx.Headers(), b"1")
        assert not cache.set("GET", URL, "", 404, _headers(cache_control="max-age=60"), b"1")
        assert not cache.set("POST", URL, "", 200, _headers(cache_control="max-age=60"), b"1")
        assert cache.get("GET", URL, "") is None

    def test_invalidate_and_clear(self, cache: ResponseCache) -> None:
        headers = _headers(cache_control="max-age=60")
        cache.set("GET", URL, "", 200, headers, b"1")
        cache.invalidate("GET", URL, "")
        assert cache.get("GET", URL, "") is None
        cache.set("GET", URL, "", 200, headers, b"1")
        cache.clear()
        assert cache.stats()["size"] == 0

    def test_disabled(self, tmp_path: Path) -> None:
        cache = ResponseCache(tmp_path, CacheConfig(enabled=False))
        assert not cache.enabled
        assert not cache.set("GET", URL, "", 200, _headers(cache_control="max-age=60"), b"1")
        assert cache.stats() == {"enabled": False}


class TestDiskStore:
    def test_round_trip_and_reopen(self, tmp_path: Path) -> None:
        store = DiskStore(tmp_path / "store")
        store.set("k", {"a": 1})
        store.flush()
        assert store.get("k") == {"a": 1}
        store.delete("k")
        assert store.get("k") is None
        assert len(store) == 0
        store.flush()


def _description(expires_at: float = 2000.0) -> CachedDescription:
    return CachedDescription(
        location="https://api.example.com/openapi.json",
        fingerprint="abc",
        raw="{}",
        etag='"v1"',
        fetched_at=1000.0,
        expires_at=expires_at,
    )


class TestDescriptionCache:
    def test_set_get_invalidate(self, tmp_path: Path) -> None:
        cache = DescriptionCache(DiskStore(tmp_path))
        cache.set("petstore:default", _description())
        assert cache.get("petstore:default") == _description()
        assert cache.get("petstore:admin") is None
        cache.invalidate("petstore:default")
        assert cache.get("petstore:default") is None
        cache.flush()

    def test_freshness(self) -> None:
        assert DescriptionCache.is_fresh(_description(2000.0), now=1999.0)
        assert not DescriptionCache.is_fresh(_description(2000.0), now=2000.0)

    def test_corrupt_entry_treated_as_missing(self, tmp_path: Path) -> None:
        store = DiskStore(tmp_path)
        store.set("description:petstore:default", {"location": 42})
        assert DescriptionCache(store).get("petstore:default") is None
        store.flush()

    def test_one_lock_per_key(self, tmp_path: Path) -> None:
        cache = DescriptionCache(DiskStore(tmp_path))
        assert cache.lock_for("a:default") is cache.lock_for("a:default")
        assert cache.lock_for("a:default") is not cache.lock_for("b:default")
        cache.flush()
