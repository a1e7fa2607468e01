"""Disk-backed caches built on :mod:`diskcache`.

Two pieces live here:

* :class:`DiskStore` -- a small key/value store implementing the
  :class:`PersistedCache` protocol (``get`` / ``set`` / ``delete`` /
  ``flush``). The API description cache persists through it.
* :class:`ResponseCache` -- an HTTP response cache for GET requests. A
  response is stored only when its ``Cache-Control`` header allows it and
  carries a positive ``max-age``; the lifetime is capped by
  :attr:`~restcli.models.CacheConfig.ttl_seconds`. Bodies are stored with
  content-encoding already removed.

Cache keys are SHA-256 hashes of ``METHOD|URL|profile-key`` so that two
profiles of the same API never share cached responses.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Any, Optional, Protocol

import diskcache
import httpx

from restcli.models import CacheConfig

logger = logging.getLogger(__name__)

_MAX_AGE = re.compile(r"(?:^|,)\s*max-age\s*=\s*\"?(\d+)\"?", re.IGNORECASE)
_NO_STORE = re.compile(r"(?:^|,)\s*(no-store|no-cache|private)\b", re.IGNORECASE)


class PersistedCache(Protocol):
    """Key/value persistence used by the description cache."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, expire: Optional[float] = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def flush(self) -> None:
        ...


class DiskStore:
    """:class:`PersistedCache` backed by a :class:`diskcache.Cache` directory.

    Values must be picklable; writes are durable as soon as :meth:`set`
    returns. :meth:`flush` releases the SQLite connection, which is
    reopened transparently on the next access.

    Args:
        directory: Directory holding the cache files; created when missing.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def set(self, key: str, value: Any, expire: Optional[float] = None) -> None:
        self._cache.set(key, value, expire=expire)

    def delete(self, key: str) -> None:
        self._cache.delete(key)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def flush(self) -> None:
        self._cache.close()


def cache_lifetime(headers: httpx.Headers, ceiling: int) -> int:
    """Seconds a response may be cached, or 0 when it must not be.

    Args:
        headers: The response headers.
        ceiling: Upper bound from configuration.
    """
    directives = ", ".join(headers.get_list("cache-control"))
    if not directives or _NO_STORE.search(directives):
        return 0
    match = _MAX_AGE.search(directives)
    if match is None:
        return 0
    return max(0, min(int(match.group(1)), ceiling))


class ResponseCache:
    """Disk-backed cache for HTTP GET responses.

    Entries are dicts with ``status``, ``reason``, ``headers`` (list of
    pairs), ``content`` (decoded bytes) and ``url``.

    Args:
        cache_dir: Root cache directory; a ``responses/`` subdirectory is used.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds`` ceiling).

    Example::

        cache = ResponseCache(get_cache_dir(), CacheConfig())
        hit = cache.get("GET", "https://api.example.com/items", "example:default")
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._directory = Path(cache_dir) / "responses"
        self._cache: Optional[diskcache.Cache] = None
        if config.enabled:
            self._cache = diskcache.Cache(str(self._directory))

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, method: str, url: str, vary: str = "") -> Optional[dict[str, Any]]:
        """Return the cached entry for a GET, or ``None`` on a miss."""
        if self._cache is None or method.upper() != "GET":
            return None
        entry = self._cache.get(self._make_key(method, url, vary))
        if entry is not None:
            logger.debug("Response cache hit for %s", url)
        return entry

    def set(
        self,
        method: str,
        url: str,
        vary: str,
        status: int,
        headers: httpx.Headers,
        content: bytes,
        reason: str = "",
        final_url: Optional[str] = None,
    ) -> bool:
        """Store a response if it is a cacheable 2xx GET.

        The entry is keyed by the request *url*; *final_url* is the address
        the response came from after redirects and is what a hit reports.

        Returns:
            True when the response was stored.
        """
        if self._cache is None or method.upper() != "GET":
            return False
        if not 200 <= status < 300:
            return False
        lifetime = cache_lifetime(headers, self._config.ttl_seconds)
        if lifetime <= 0:
            return False

        entry = {
            "status": status,
            "reason": reason,
            "headers": [
                (k, v)
                for k, v in headers.multi_items()
                if k.lower() not in ("content-encoding", "content-length")
            ],
            "content": content,
            "url": final_url or url,
        }
        self._cache.set(self._make_key(method, url, vary), entry, expire=lifetime)
        return True

    def invalidate(self, method: str, url: str, vary: str = "") -> None:
        if self._cache is not None:
            self._cache.delete(self._make_key(method, url, vary))

    def clear(self) -> None:
        """Remove all entries."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._directory),
            "ttl_seconds": self._config.ttl_seconds,
        }

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    @staticmethod
    def _make_key(method: str, url: str, vary: str) -> str:
        raw = "|".join([method.upper(), url, vary])
        return hashlib.sha256(raw.encode()).hexdigest()
