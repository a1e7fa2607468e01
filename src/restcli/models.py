"""Canonical Pydantic models shared across all restcli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AuthSetting`, :class:`ProfileConfig`, :class:`APIEntry`,
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`CacheConfig`,
    :class:`PluginsConfig` and :class:`GlobalConfig`.

**Runtime settings** -- :class:`PipelineSettings`, the typed form of the flat
string-keyed override map (``server-override``, ``headers[]`` ...) that the
CLI layer hands to the request pipeline.

**Pipeline and description models** -- produced by the link engine and the
API description loader:
    :class:`Link`, :class:`AuthParam`, :class:`HTTPMethod`,
    :class:`ParameterLocation`, :class:`OperationParam`, :class:`Operation`,
    :class:`APIConfig` and :class:`CachedDescription`.

All models use Pydantic v2. Configuration models that accept plugin-defined
extensions use ``extra="allow"`` so that unknown keys are preserved in
``model_extra``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Auth ---


class AuthParam(BaseModel):
    """An input parameter declared by an auth handler.

    Handlers return an ordered list of these from
    :meth:`~restcli.auth.base.AuthHandler.parameters`. The dispatcher checks
    that every ``required`` parameter has a value before calling the handler.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    help: str = ""
    required: bool = False


class AuthSetting(BaseModel):
    """The auth scheme and its parameter values configured for a profile.

    Parameter values may be credential references (``env:VAR`` or
    ``file:/path``) which are resolved just before the handler runs.

    Example::

        AuthSetting(name="http-basic", params={"username": "kari", "password": "env:PW"})
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(description="Registered auth scheme, e.g. http-basic, bearer")
    params: dict[str, str] = Field(default_factory=dict)


# --- Persisted configuration ---


class ProfileConfig(BaseModel):
    """A named credential/override bundle inside an :class:`APIEntry`."""

    model_config = ConfigDict(extra="allow")

    base: Optional[str] = Field(
        default=None, description="Override the API base URL for this profile"
    )
    auth: Optional[AuthSetting] = None
    headers: dict[str, str] = Field(default_factory=dict)
    query: dict[str, str] = Field(default_factory=dict)


class APIEntry(BaseModel):
    """A configured API, stored as ``apis/<name>.json`` in the config directory.

    The ``name`` doubles as the short alias accepted by the address resolver
    (``restcli get petstore/pets``) and as the command group under which the
    API's operations are registered.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base: str = Field(description="Base URL of the API")
    spec_files: list[str] = Field(
        default_factory=list,
        description="Explicit description locations; discovered from base when empty",
    )
    profiles: dict[str, ProfileConfig] = Field(
        default_factory=lambda: {"default": ProfileConfig()}
    )

    def profile(self, name: str) -> ProfileConfig:
        """Return the named profile, or an empty one if it is not configured."""
        return self.profiles.get(name) or ProfileConfig()

    def base_for(self, profile: str) -> str:
        """Return the effective base URL for *profile*."""
        return (self.profile(profile).base or self.base).rstrip("/")


class RequestConfig(BaseModel):
    """Default HTTP request settings."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_pages: int = Field(default=100, description="Pagination ceiling")
    auth_timeout: float = Field(
        default=30.0, description="Timeout for auth handlers that run commands"
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, yaml, table"
    )


class CacheConfig(BaseModel):
    """Response and description cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable HTTP response caching")
    ttl_seconds: int = Field(
        default=300, description="Upper bound on response cache TTL in seconds"
    )
    description_ttl_seconds: int = Field(
        default=86400,
        description="How long a fetched API description is trusted without revalidation",
    )


class PluginsConfig(BaseModel):
    """Explicit plugin allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/restcli/config.json``.

    Loaded and saved by :func:`~restcli.config.load_global_config` and
    :func:`~restcli.config.save_global_config`. Fields here have the lowest
    precedence and can be overridden by environment variables or CLI flags.
    """

    default_profile: str = "default"
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)


# --- Runtime settings ---


class PipelineSettings(BaseModel):
    """Global per-invocation overrides threaded through the pipeline.

    Built from the flat, string-keyed configuration the CLI layer collects
    (see :meth:`from_flat`). The pipeline never reads ambient global state;
    everything it needs arrives here.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    server_override: Optional[str] = Field(default=None, alias="server-override")
    headers: list[str] = Field(default_factory=list, alias="headers[]")
    query: list[str] = Field(default_factory=list, alias="query[]")
    profile: str = "default"
    no_cache: bool = Field(default=False, alias="no-cache")
    insecure: bool = False
    client_cert: Optional[str] = Field(default=None, alias="client-cert")
    client_key: Optional[str] = Field(default=None, alias="client-key")
    ca_cert: Optional[str] = Field(default=None, alias="ca-cert")
    no_paginate: bool = Field(default=False, alias="no-paginate")
    timeout: float = 30.0
    max_pages: int = Field(default=100, alias="max-pages")
    verbose: bool = False

    @field_validator("headers", "query", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    @classmethod
    def from_flat(cls, values: Mapping[str, Any]) -> PipelineSettings:
        """Build settings from a flat mapping such as ``{"no-cache": "true"}``.

        Keys may use the dashed form (``server-override``), the list form
        (``headers[]``) or the Python attribute name. ``None`` values are
        dropped so that defaults apply. Unknown keys are ignored.

        Args:
            values: The flat configuration mapping.

        Returns:
            A frozen :class:`PipelineSettings`.
        """
        known = {f.alias or name for name, f in cls.model_fields.items()} | set(cls.model_fields)
        data: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if key in known:
                data[key] = value
                continue
            normalised = key.rstrip("[]").replace("-", "_")
            if normalised in cls.model_fields:
                data[normalised] = value
        return cls.model_validate(data)

    def header_pairs(self) -> list[tuple[str, str]]:
        """Split ``Name: value`` header strings into pairs."""
        return [_split_pair(h, ":") for h in self.headers]

    def query_pairs(self) -> list[tuple[str, str]]:
        """Split ``name=value`` query strings into pairs."""
        return [_split_pair(q, "=") for q in self.query]


def _split_pair(text: str, sep: str) -> tuple[str, str]:
    name, _, value = text.partition(sep)
    return name.strip(), value.strip()


# --- Links ---


class Link(BaseModel):
    """A resolved hypermedia link.

    ``target`` is always absolute by the time a link reaches a caller; the
    link engine resolves relative references against the response URL.
    Templated links keep their URI-template expressions.
    """

    model_config = ConfigDict(frozen=True)

    relation: str
    target: str
    templated: bool = False
    title: Optional[str] = None

    @field_validator("relation")
    @classmethod
    def _relation_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("link relation must not be empty")
        return value


LinkMap = dict[str, list[Link]]
"""Relation name to links, in discovery order."""


# --- API description models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised in API descriptions and the generic verbs."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"


class ParameterLocation(str, enum.Enum):
    """Where an operation parameter is sent."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"


class OperationParam(BaseModel):
    """A single parameter of a synthesised :class:`Operation`.

    Path parameters become positional CLI arguments; query and header
    parameters become ``--option`` flags.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    schema_type: str = Field(default="string", description="JSON Schema type")
    schema_format: Optional[str] = None
    default: Any = None
    enum_values: Optional[list[str]] = None


class Operation(BaseModel):
    """One callable remote endpoint synthesised from an API description."""

    name: str
    method: HTTPMethod
    path: str = Field(description="Path template relative to the API base, e.g. /pets/{id}")
    parameters: list[OperationParam] = Field(default_factory=list)
    body_media_type: Optional[str] = None
    body_schema_ref: Optional[str] = None
    body_required: bool = False
    auth_scheme: Optional[str] = Field(
        default=None,
        description=(
            "Best-guess registered auth scheme, None for no auth. Informational only:"
            " requests are signed with the profile's auth setting"
        ),
    )
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False

    @model_validator(mode="after")
    def _unique_params_per_location(self) -> Operation:
        seen: set[tuple[str, str]] = set()
        for param in self.parameters:
            key = (param.location.value, param.name)
            if key in seen:
                raise ValueError(
                    f"duplicate {param.location.value} parameter '{param.name}' "
                    f"in operation '{self.name}'"
                )
            seen.add(key)
        return self

    def params_in(self, location: ParameterLocation) -> list[OperationParam]:
        """Return the parameters sent in *location*, in declaration order."""
        return [p for p in self.parameters if p.location == location]

    @property
    def accepts_body(self) -> bool:
        """Whether the operation takes a request body."""
        return self.body_media_type is not None or self.method in (
            HTTPMethod.POST,
            HTTPMethod.PUT,
            HTTPMethod.PATCH,
        )


class APIConfig(BaseModel):
    """The loaded description of one API profile and its operations."""

    profile: str = Field(description="Profile key, e.g. petstore:default")
    base_url: str
    description_location: str
    loaded_at: datetime
    title: Optional[str] = None
    operations: list[Operation] = Field(default_factory=list)

    def operation(self, name: str) -> Optional[Operation]:
        """Look up an operation by its command name."""
        for op in self.operations:
            if op.name == name:
                return op
        return None


class CachedDescription(BaseModel):
    """A raw API description as stored by the description cache."""

    location: str
    fingerprint: str = Field(description="sha256 of the raw document")
    raw: str
    content_type: str = ""
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    fetched_at: float
    expires_at: float
