"""Per-invocation state shared by the CLI commands.

The root callback in :mod:`restcli.app` creates one :class:`Runtime` from
the global flags and stores it as the Click context object. Commands pull
what they need from it; everything is built lazily so that ``restcli api
list`` never opens an HTTP client and ``restcli --help`` never loads
plugins.
"""

from __future__ import annotations

import sys
from typing import Any, Mapping, Optional, Sequence

import httpx
import typer

from restcli.cache import DescriptionCache, DiskStore, ResponseCache
from restcli.cancel import CancelToken
from restcli.client import (
    HttpxTransport,
    PaginatedResponse,
    PipelineBuilder,
    PipelineContext,
    RequestPipeline,
    default_builder,
)
from restcli.config import get_cache_dir, load_all_apis, load_global_config, resolve_settings
from restcli.exit_codes import EXIT_GENERIC_FAILURE
from restcli.models import APIEntry, GlobalConfig, PipelineSettings
from restcli.output import debug, format_response, warning
from restcli.parser.loader import APIDescriptionLoader
from restcli.plugins import PluginManager

_NO_BODY_METHODS = ("GET", "HEAD", "OPTIONS")


class Runtime:
    """Lazily built collaborators for one CLI invocation.

    Args:
        flags: Flat global flag values (``server-override``, ``headers[]`` ...).
        global_config: Pre-loaded global config; read from disk when ``None``.
        cancel: Cancellation token fired by the SIGINT handler.
        http_transport: Optional httpx transport, e.g. a
            :class:`httpx.MockTransport` in tests.
        builder: Pipeline builder to use instead of the default one.
    """

    def __init__(
        self,
        flags: Mapping[str, Any],
        global_config: Optional[GlobalConfig] = None,
        *,
        cancel: Optional[CancelToken] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
        builder: Optional[PipelineBuilder] = None,
    ) -> None:
        self.config = global_config or load_global_config()
        self.settings: PipelineSettings = resolve_settings(flags, self.config)
        self.cancel = cancel or CancelToken()
        self._http_transport = http_transport
        self._builder = builder
        self._apis: Optional[dict[str, APIEntry]] = None
        self._context: Optional[PipelineContext] = None
        self._transport: Optional[HttpxTransport] = None
        self._response_cache: Optional[ResponseCache] = None
        self._description_store: Optional[DiskStore] = None
        self._pipeline: Optional[RequestPipeline] = None
        self._loader: Optional[APIDescriptionLoader] = None

    # ------------------------------------------------------------------ #
    # Collaborators
    # ------------------------------------------------------------------ #

    @property
    def apis(self) -> dict[str, APIEntry]:
        if self._apis is None:
            self._apis = load_all_apis()
        return self._apis

    @property
    def context(self) -> PipelineContext:
        if self._context is None:
            builder = self._builder or default_builder()
            if not builder.built:
                loaded = PluginManager().discover(builder, self.config)
                if loaded:
                    debug(f"Loaded plugins: {', '.join(loaded)}")
            self._context = builder.build()
        return self._context

    @property
    def transport(self) -> HttpxTransport:
        if self._transport is None:
            self._transport = HttpxTransport(self.settings, transport=self._http_transport)
        return self._transport

    @property
    def pipeline(self) -> RequestPipeline:
        if self._pipeline is None:
            if self._response_cache is None and self.config.cache.enabled:
                self._response_cache = ResponseCache(get_cache_dir(), self.config.cache)
            self._pipeline = RequestPipeline(
                self.context,
                self.transport,
                self.settings,
                apis=self.apis,
                cache=self._response_cache,
                auth_timeout=self.config.request.auth_timeout,
            )
        return self._pipeline

    @property
    def loader(self) -> APIDescriptionLoader:
        if self._loader is None:
            self._description_store = DiskStore(get_cache_dir() / "descriptions")
            self._loader = APIDescriptionLoader(
                self.context,
                self.transport,
                DescriptionCache(self._description_store),
                self.apis,
                profile=self.settings.profile,
                ttl=self.config.cache.description_ttl_seconds,
            )
        return self._loader

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
        if self._response_cache is not None:
            self._response_cache.close()
        if self._description_store is not None:
            self._description_store.flush()

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        address: str,
        args: Sequence[str] = (),
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        content_type: Optional[str] = None,
        paginate: Optional[bool] = None,
    ) -> PaginatedResponse:
        """Execute a request with the invocation's cancel token.

        Standard input is read as the body for methods that carry one.
        """
        stdin = None if method.upper() in _NO_BODY_METHODS else sys.stdin
        return self.pipeline.execute(
            method,
            address,
            args,
            headers=headers,
            params=params,
            content_type=content_type,
            paginate=paginate,
            cancel=self.cancel,
            stdin=stdin,
        )

    def show(self, result: PaginatedResponse) -> None:
        """Print *result* and its warnings; exit 1 for an HTTP error status."""
        for message in dict.fromkeys(result.warnings):
            warning(message)
        if result.limit_reached is not None:
            warning(str(result.limit_reached))

        normalized = result.normalized()
        if result.first.method == "HEAD" and normalized["body"] is None:
            normalized["body"] = dict(normalized["headers"])
        format_response(normalized)

        if result.status >= 400:
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
