"""Locate, fetch, cache and parse the API description of a configured API.

:class:`APIDescriptionLoader` turns an :class:`~restcli.models.APIEntry`
into an :class:`~restcli.models.APIConfig` and registers one command per
operation:

1. A description cached for the profile key (``<api>:<profile>``) that is
   still fresh, and whose location matches the configured one, is used
   without touching the network.
2. Otherwise the document is located: the first of the API's
   ``spec_files``, else the location remembered in a stale cache entry,
   else discovery from the base URL (a ``Link`` header with relation
   ``service-desc`` or ``describedby``, then ``<base>/openapi.json`` and
   ``<base>/openapi.yaml``).
3. Remote documents are fetched with ``If-None-Match`` /
   ``If-Modified-Since`` when a stale entry exists; ``304 Not Modified`` or
   an unchanged sha256 fingerprint keeps the cached document.
4. The document is parsed as JSON or YAML and handed to the registered
   description formats.

Loads of the same profile key are serialised, so concurrent callers fetch
once and share the in-process result.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Protocol
from urllib.parse import urljoin, urlsplit

import click
import yaml

from restcli.cache.descriptions import DescriptionCache
from restcli.client.context import PipelineContext
from restcli.client.transport import HttpxTransport, RawResponse
from restcli.exceptions import ConfigError, DescriptionFetchError, DescriptionParseError, TransportError
from restcli.links.link_header import parse_link_header
from restcli.models import APIConfig, APIEntry, CachedDescription, Operation

logger = logging.getLogger(__name__)

DESCRIPTION_ACCEPT = "application/openapi+json, application/json, application/yaml;q=0.9, */*;q=0.5"
DISCOVERY_RELATIONS = ("service-desc", "describedby")
WELL_KNOWN_PATHS = ("openapi.json", "openapi.yaml")


class CommandSlot(Protocol):
    """Where loaded operations are registered as commands."""

    def register_command(self, name: str, operation: Operation) -> click.Command:
        ...


def parse_document(content: str, hint: str = "", location: Optional[str] = None) -> Any:
    """Parse an API description as JSON or YAML.

    JSON is tried first unless *hint* says ``yaml``; valid JSON is also
    valid YAML, but the JSON parser is stricter and faster.

    Args:
        content: The document text.
        hint: ``"json"``, ``"yaml"`` or ``""`` to detect.
        location: Where the document came from, for error messages.

    Returns:
        The parsed document.

    Raises:
        DescriptionParseError: If the content is empty or cannot be parsed.
    """
    if not content.strip():
        raise DescriptionParseError("API description is empty", location)

    if hint != "yaml":
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise DescriptionParseError(f"Invalid JSON: {exc}", location) from exc

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise DescriptionParseError(f"Failed to parse as JSON or YAML: {exc}", location) from exc


def format_hint(location: str, content_type: str = "") -> str:
    """Guess ``json`` or ``yaml`` from a content type or file suffix."""
    content_type = content_type.lower()
    if "json" in content_type:
        return "json"
    if "yaml" in content_type or "yml" in content_type:
        return "yaml"
    suffix = Path(urlsplit(location).path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def fingerprint(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def _is_remote(location: str) -> bool:
    return urlsplit(location).scheme in ("http", "https")


class APIDescriptionLoader:
    """Loads API descriptions and registers their operations as commands.

    Args:
        context: Frozen pipeline context (encodings, formats, auth schemes).
        transport: Used for discovery and fetching.
        cache: Persisted description cache.
        apis: Configured APIs keyed by name.
        profile: Active profile name.
        ttl: Seconds a fetched description is trusted without revalidation.
        clock: Time source, replaceable in tests.

    Example::

        loader = APIDescriptionLoader(context, transport, DescriptionCache(store), apis)
        config = loader.load("petstore", CommandSlot(group, runner))
        [op.name for op in config.operations]
    """

    def __init__(
        self,
        context: PipelineContext,
        transport: HttpxTransport,
        cache: DescriptionCache,
        apis: Mapping[str, APIEntry],
        *,
        profile: str = "default",
        ttl: float = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._context = context
        self._transport = transport
        self._cache = cache
        self._apis = apis
        self._profile = profile
        self._ttl = ttl
        self._clock = clock
        self._memo: dict[str, APIConfig] = {}

    def profile_key(self, api_name: str) -> str:
        return f"{api_name}:{self._profile}"

    def load(
        self,
        api_name: str,
        command_slot: Optional[CommandSlot] = None,
        refresh: bool = False,
    ) -> APIConfig:
        """Load the description of *api_name* and register its operations.

        Args:
            api_name: A configured API.
            command_slot: Receives one command per operation; skipped when
                ``None``.
            refresh: Ignore cached copies and fetch again.

        Returns:
            The loaded API configuration.

        Raises:
            ConfigError: If the API is not configured.
            DescriptionFetchError: If no description could be fetched.
            DescriptionParseError: If the description is malformed.
        """
        entry = self._apis.get(api_name)
        if entry is None:
            raise ConfigError(f"API '{api_name}' is not configured")
        key = self.profile_key(api_name)
        explicit = self._explicit_location(entry)

        with self._cache.lock_for(key):
            config = None if refresh else self._memo.get(key)
            if config is not None and explicit and config.description_location != explicit:
                config = None
            if config is None:
                cached, fetched = self._obtain(entry, key, explicit, refresh)
                config = self._build_config(entry, key, cached)
                if fetched:
                    self._cache.set(key, cached)
                self._memo[key] = config

        if command_slot is not None:
            self._register(config, command_slot)
        return config

    def invalidate(self, api_name: str) -> None:
        """Forget every cached copy of *api_name*'s description."""
        key = self.profile_key(api_name)
        with self._cache.lock_for(key):
            self._memo.pop(key, None)
            self._cache.invalidate(key)

    # ------------------------------------------------------------------ #
    # Locating and fetching
    # ------------------------------------------------------------------ #

    def _explicit_location(self, entry: APIEntry) -> Optional[str]:
        if not entry.spec_files:
            return None
        location = entry.spec_files[0]
        if _is_remote(location):
            return location
        if location.startswith("file://"):
            return location[len("file://"):]
        path = Path(location).expanduser()
        if path.is_absolute() or path.exists():
            return str(path)
        return urljoin(entry.base_for(self._profile) + "/", location)

    def _obtain(
        self,
        entry: APIEntry,
        key: str,
        explicit: Optional[str],
        refresh: bool,
    ) -> tuple[CachedDescription, bool]:
        now = self._clock()
        stale = self._cache.get(key)
        if stale is not None and explicit and stale.location != explicit:
            stale = None

        if stale is not None and not refresh and self._cache.is_fresh(stale, now):
            logger.debug("Using cached description for %s from %s", key, stale.location)
            return stale, False

        if explicit:
            fresh = self._retrieve(explicit, None if refresh else stale)
        elif stale is not None and not refresh:
            fresh = self._retrieve(stale.location, stale)
        else:
            fresh = self._discover(entry)

        return fresh, True

    def _discover(self, entry: APIEntry) -> CachedDescription:
        base = entry.base_for(self._profile)
        candidates: list[str] = []

        try:
            root = self._get(base, {})
        except DescriptionFetchError as exc:
            logger.debug("Discovery request to %s failed: %s", base, exc)
        else:
            for value in root.headers.get_list("link"):
                for target, params in parse_link_header(value):
                    if set(params.get("rel", "").lower().split()) & set(DISCOVERY_RELATIONS):
                        candidates.append(urljoin(root.url, target))
        candidates.extend(f"{base}/{path}" for path in WELL_KNOWN_PATHS)

        for location in candidates:
            try:
                return self._retrieve(location, None)
            except DescriptionFetchError as exc:
                logger.debug("No description at %s: %s", location, exc)
        raise DescriptionFetchError(base, "no API description found; tried " + ", ".join(candidates))

    def _retrieve(self, location: str, stale: Optional[CachedDescription]) -> CachedDescription:
        now = self._clock()
        if not _is_remote(location):
            return self._read_local(location, now)

        conditional: dict[str, str] = {}
        if stale is not None:
            if stale.etag:
                conditional["If-None-Match"] = stale.etag
            if stale.last_modified:
                conditional["If-Modified-Since"] = stale.last_modified

        raw = self._get(location, conditional)
        if raw.status == 304 and stale is not None:
            logger.debug("Description at %s not modified", location)
            return stale.model_copy(update={"fetched_at": now, "expires_at": now + self._ttl})
        if not 200 <= raw.status < 300:
            raise DescriptionFetchError(location, f"HTTP {raw.status} {raw.reason}".strip())

        decoded = self._context.encodings.decode(raw.headers.get("content-encoding"), raw.content)
        for warning in decoded.warnings:
            logger.warning("%s: %s", location, warning)
        text = decoded.data.decode("utf-8", errors="replace")
        digest = fingerprint(text)
        if stale is not None and stale.fingerprint == digest:
            logger.debug("Description at %s unchanged", location)

        return CachedDescription(
            location=location,
            fingerprint=digest,
            raw=text,
            content_type=raw.headers.get("content-type", ""),
            etag=raw.headers.get("etag"),
            last_modified=raw.headers.get("last-modified"),
            fetched_at=now,
            expires_at=now + self._ttl,
        )

    def _read_local(self, location: str, now: float) -> CachedDescription:
        path = Path(location).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DescriptionFetchError(location, str(exc)) from exc
        return CachedDescription(
            location=location,
            fingerprint=fingerprint(text),
            raw=text,
            fetched_at=now,
            expires_at=now + self._ttl,
        )

    def _get(self, url: str, headers: Mapping[str, str]) -> RawResponse:
        request_headers = {"Accept": DESCRIPTION_ACCEPT, **headers}
        accept_encoding = self._context.encodings.build_accept_encoding_header()
        if accept_encoding:
            request_headers["Accept-Encoding"] = accept_encoding
        try:
            request = self._transport.build_request("GET", url, headers=request_headers)
            return self._transport.send(request)
        except TransportError as exc:
            raise DescriptionFetchError(url, str(exc)) from exc

    # ------------------------------------------------------------------ #
    # Parsing and registration
    # ------------------------------------------------------------------ #

    def _build_config(self, entry: APIEntry, key: str, cached: CachedDescription) -> APIConfig:
        document = parse_document(
            cached.raw, format_hint(cached.location, cached.content_type), cached.location
        )
        parsed = self._context.formats.parse(
            document, cached.location, self._context.auth.schemes()
        )
        return APIConfig(
            profile=key,
            base_url=entry.base_for(self._profile),
            description_location=cached.location,
            loaded_at=datetime.fromtimestamp(cached.fetched_at, tz=timezone.utc),
            title=parsed.title,
            operations=parsed.operations,
        )

    @staticmethod
    def _register(config: APIConfig, command_slot: CommandSlot) -> None:
        seen: set[str] = set()
        for operation in config.operations:
            if operation.name in seen:
                logger.warning(
                    "Duplicate operation name '%s' in %s; keeping the first",
                    operation.name,
                    config.description_location,
                )
                continue
            seen.add(operation.name)
            command_slot.register_command(operation.name, operation)
