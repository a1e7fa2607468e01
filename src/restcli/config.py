"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for restcli:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.restcli/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, :func:`get_apis_dir`.
* **Global config** -- A single :class:`~restcli.models.GlobalConfig`
  JSON file storing defaults (output format, cache settings, plugins).
* **APIs** -- One JSON file per configured API, each deserialised into an
  :class:`~restcli.models.APIEntry` holding its base URL, description
  locations and named profiles. Managed via :func:`load_api`,
  :func:`save_api`, :func:`delete_api`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables and global config into the
  :class:`~restcli.models.PipelineSettings` handed to the pipeline.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  referenced from auth parameters (``env:VAR``, ``file:/path``).

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from restcli.exceptions import ConfigError
from restcli.models import APIEntry, GlobalConfig, PipelineSettings

_APP_NAME = "restcli"
_CONFIG_FILENAME = "config.json"
_ENV_PREFIX = "RESTCLI_"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/restcli/`` (default ``~/.config/restcli/``).
    On macOS/Windows: ``~/.restcli/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the HTTP response cache and the API description cache. Cached
    data can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/restcli/`` (default ``~/.cache/restcli/``).
    On macOS/Windows: ``~/.restcli/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/restcli/`` (default ``~/.local/share/restcli/``).
    On macOS/Windows: ``~/.restcli/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_apis_dir() -> Path:
    """Return the APIs directory (``<config_dir>/apis/``), creating it if necessary."""
    path = get_config_dir() / "apis"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~restcli.models.GlobalConfig`, or a default
        instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- APIs ---


def _api_path(name: str) -> Path:
    return get_apis_dir() / f"{name}.json"


def list_apis() -> list[str]:
    """Return all configured API names, sorted alphabetically."""
    return sorted(p.stem for p in get_apis_dir().glob("*.json") if p.is_file())


def load_api(name: str) -> APIEntry:
    """Load and validate a configured API from disk.

    Raises:
        ConfigError: If the API is not configured or its file is invalid.
    """
    path = _api_path(name)
    if not path.is_file():
        raise ConfigError(f"API '{name}' is not configured (expected {path})")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return APIEntry.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid API config '{name}' at {path}: {exc}") from exc


def load_all_apis() -> dict[str, APIEntry]:
    """Load every configured API keyed by name.

    Broken files raise :class:`~restcli.exceptions.ConfigError` like
    :func:`load_api` does.
    """
    return {name: load_api(name) for name in list_apis()}


def save_api(entry: APIEntry) -> None:
    """Persist an API entry atomically. The file name is derived from ``entry.name``."""
    data = entry.model_dump(mode="json", exclude_none=True)
    _atomic_write(_api_path(entry.name), json.dumps(data, indent=2) + "\n")


def delete_api(name: str) -> None:
    """Delete a configured API.

    Raises:
        ConfigError: If the API does not exist.
    """
    path = _api_path(name)
    if not path.is_file():
        raise ConfigError(f"API '{name}' is not configured")
    path.unlink()


def api_exists(name: str) -> bool:
    """Check whether an API is configured."""
    return _api_path(name).is_file()


# --- Precedence resolution ---


def resolve_settings(
    flags: Mapping[str, Any],
    global_config: Optional[GlobalConfig] = None,
) -> PipelineSettings:
    """Resolve the effective pipeline settings.

    Precedence (high to low):
        1. CLI flags (*flags*, flat keys such as ``server-override``)
        2. Environment variables (``RESTCLI_PROFILE``, ``RESTCLI_SERVER_OVERRIDE``,
           ``RESTCLI_NO_CACHE``, ...; dashes become underscores)
        3. Global config (request timeout, page ceiling, default profile, cache)
        4. Defaults

    Args:
        flags: Flat mapping of CLI flag values. ``None`` means "not given".
        global_config: Pre-loaded global config; loaded from disk when ``None``.

    Returns:
        The frozen :class:`~restcli.models.PipelineSettings`.
    """
    cfg = global_config or load_global_config()

    merged: dict[str, Any] = {
        "profile": cfg.default_profile,
        "timeout": cfg.request.timeout,
        "max-pages": cfg.request.max_pages,
        "no-cache": not cfg.cache.enabled,
    }

    for key in (
        "server-override",
        "profile",
        "no-cache",
        "insecure",
        "client-cert",
        "client-key",
        "ca-cert",
        "no-paginate",
        "timeout",
        "max-pages",
    ):
        env_value = os.environ.get(_ENV_PREFIX + key.upper().replace("-", "_"))
        if env_value:
            merged[key] = env_value

    for key, value in flags.items():
        if value is None:
            continue
        # Boolean flags only ever switch a setting on.
        if value is False and key in merged:
            continue
        if isinstance(value, (list, tuple)) and not value:
            continue
        merged[key] = value

    return PipelineSettings.from_flat(merged)


# --- Credential source resolution ---


def resolve_credential(value: str) -> str:
    """Resolve a credential reference used in an auth parameter value.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else is returned unchanged (a literal value)

    Raises:
        ConfigError: If a referenced variable or file is missing.
    """
    if value.startswith("env:"):
        var_name = value[4:]
        resolved = os.environ.get(var_name)
        if resolved is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {value})"
            )
        return resolved

    if value.startswith("file:"):
        path = Path(value[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {value})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return value
