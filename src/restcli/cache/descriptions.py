"""Cache of fetched API description documents.

Entries are :class:`~restcli.models.CachedDescription` objects keyed by
profile key (``<api>:<profile>``) and persisted through any
:class:`~restcli.cache.cache.PersistedCache`, normally a
:class:`~restcli.cache.cache.DiskStore` under the cache directory.

Expired entries are not deleted: the loader keeps them to send conditional
requests (``If-None-Match`` / ``If-Modified-Since``) and reuses the raw
document on ``304 Not Modified``.

:meth:`DescriptionCache.lock_for` hands out one lock per key so that
concurrent loads of the same profile fetch the document only once.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from pydantic import ValidationError

from restcli.cache.cache import PersistedCache
from restcli.models import CachedDescription

logger = logging.getLogger(__name__)

_KEY_PREFIX = "description:"


class DescriptionCache:
    """Profile-keyed store of raw API descriptions with per-key locking."""

    def __init__(self, store: PersistedCache) -> None:
        self._store = store
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, key: str) -> threading.Lock:
        """The lock serialising loads of *key*; the same object on every call."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, key: str) -> Optional[CachedDescription]:
        """Return the entry for *key*, expired or not.

        A corrupt entry is logged and treated as missing.
        """
        data = self._store.get(_KEY_PREFIX + key)
        if data is None:
            return None
        try:
            return CachedDescription.model_validate(data)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable cached description for %s: %s", key, exc)
            return None

    def set(self, key: str, entry: CachedDescription) -> None:
        self._store.set(_KEY_PREFIX + key, entry.model_dump(mode="json"))

    def invalidate(self, key: str) -> None:
        self._store.delete(_KEY_PREFIX + key)

    def flush(self) -> None:
        self._store.flush()

    @staticmethod
    def is_fresh(entry: CachedDescription, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) < entry.expires_at
