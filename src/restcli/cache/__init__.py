"""Response and API description caching backed by :mod:`diskcache`.

* :class:`ResponseCache` -- GET response cache honouring ``Cache-Control``.
* :class:`DiskStore` -- :class:`PersistedCache` implementation.
* :class:`DescriptionCache` -- profile-keyed API description store with
  single-flight locking.
"""

from restcli.cache.cache import DiskStore, PersistedCache, ResponseCache, cache_lifetime
from restcli.cache.descriptions import DescriptionCache

__all__ = [
    "DescriptionCache",
    "DiskStore",
    "PersistedCache",
    "ResponseCache",
    "cache_lifetime",
]
