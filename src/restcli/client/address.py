"""Turn what the user typed into an absolute request URL.

Rules, applied by :meth:`AddressResolver.resolve`:

* ``https://host/path`` -- absolute URLs pass through.
* ``:8000/items`` -- a leading colon means ``http://localhost:8000/items``.
* ``petstore/pets?limit=5`` -- when the first segment is a configured API
  name it is replaced by that API's base URL (or the active profile's
  ``base`` override).
* anything else gets ``https://`` prepended.

Finally, a ``server-override`` setting replaces the scheme and host of the
result while keeping its path and query.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

from restcli.exceptions import InvalidUsageError
from restcli.models import APIEntry, PipelineSettings

_FIRST_SEGMENT = re.compile(r"^(?P<name>[^/?#]+)(?P<rest>.*)$", re.DOTALL)


class AddressResolver:
    """Resolves short addresses against the configured APIs.

    Args:
        apis: Configured APIs keyed by name.
        settings: Supplies ``profile`` and ``server-override``.
    """

    def __init__(
        self,
        apis: Optional[Mapping[str, APIEntry]] = None,
        settings: Optional[PipelineSettings] = None,
    ) -> None:
        self._apis = dict(apis or {})
        self._settings = settings or PipelineSettings()

    def resolve(self, address: str) -> str:
        """Return the absolute URL for *address*.

        Raises:
            InvalidUsageError: If *address* is empty.
        """
        text = address.strip()
        if not text:
            raise InvalidUsageError("An address is required")

        if "://" in text:
            url = text
        elif text.startswith(":"):
            url = "http://localhost" + text
        else:
            url = self._expand_api(text) or "https://" + text

        if self._settings.server_override:
            url = _override_server(url, self._settings.server_override)
        return url

    def api_for(self, url: str) -> Optional[APIEntry]:
        """The configured API whose effective base URL prefixes *url*, if any.

        The longest matching base wins. Bases are compared after any
        ``server-override`` has been applied to them.
        """
        best: Optional[APIEntry] = None
        best_len = -1
        for entry in self._apis.values():
            base = entry.base_for(self._settings.profile)
            if self._settings.server_override:
                base = _override_server(base, self._settings.server_override)
            if (url == base or url.startswith(base + "/") or url.startswith(base + "?")) and len(
                base
            ) > best_len:
                best, best_len = entry, len(base)
        return best

    def _expand_api(self, text: str) -> Optional[str]:
        match = _FIRST_SEGMENT.match(text)
        if match is None:
            return None
        entry = self._apis.get(match.group("name"))
        if entry is None:
            return None
        return entry.base_for(self._settings.profile) + match.group("rest")


def _override_server(url: str, server: str) -> str:
    if "://" not in server:
        server = "https://" + server
    target = urlsplit(server)
    parts = urlsplit(url)
    return urlunsplit((target.scheme, target.netloc, parts.path, parts.query, parts.fragment))
