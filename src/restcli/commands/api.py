"""API commands -- manage configured APIs and their profiles.

Provides the ``restcli api`` sub-command group. Each configured API is a
JSON file in the ``apis/`` config directory holding its base URL, optional
description locations and named profiles (auth, headers, query
parameters, base override). Once configured, the API name works as an
address prefix (``restcli get petstore/pets``) and as a command group
with one command per described operation (``restcli petstore list-pets``).
"""

from __future__ import annotations

from typing import Optional

import typer

from restcli.commands import get_runtime
from restcli.exceptions import ConfigError, InvalidUsageError
from restcli.models import APIEntry, AuthSetting, ProfileConfig
from restcli.output import info, print_table, print_value, success

api_app = typer.Typer(no_args_is_help=True)


def _parse_pairs(values: Optional[list[str]], sep: str, what: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values or ():
        name, found, rest = value.partition(sep)
        if not found or not name.strip():
            raise InvalidUsageError(f"Invalid {what} '{value}', expected name{sep}value")
        pairs[name.strip()] = rest.strip()
    return pairs


@api_app.command("configure")
def api_configure(
    ctx: typer.Context,
    name: str = typer.Argument(help="Short name for the API, used as an address prefix."),
    base: Optional[str] = typer.Argument(None, help="Base URL of the API."),
    spec_file: Optional[list[str]] = typer.Option(
        None, "--spec-file", help="Description location (URL or path). Repeatable."
    ),
    profile_base: Optional[str] = typer.Option(
        None, "--profile-base", help="Base URL override for this profile."
    ),
    auth: Optional[str] = typer.Option(
        None, "--auth", help="Auth scheme, e.g. http-basic, bearer, api-key, api-key-header."
    ),
    auth_param: Optional[list[str]] = typer.Option(
        None, "--auth-param", help="Auth parameter as name=value (env:VAR and file:PATH work)."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--profile-header", help="Header sent with every request, Name: value."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--profile-query", help="Query parameter sent with every request, name=value."
    ),
) -> None:
    """Add an API or update its settings.

    Profile settings go to the active profile (``--profile``, default
    ``default``).

    Example::

        restcli api configure petstore https://petstore.example.com/v1
        restcli api configure petstore --auth http-basic \\
            --auth-param username=kari --auth-param password=env:PETSTORE_PW
    """
    from restcli.config import api_exists, load_api, save_api

    runtime = get_runtime(ctx)
    profile_name = runtime.settings.profile

    if api_exists(name):
        entry = load_api(name)
        if base:
            entry.base = base
    elif base:
        entry = APIEntry(name=name, base=base)
    else:
        raise InvalidUsageError(f"API '{name}' is new; a base URL is required")

    if spec_file:
        entry.spec_files = list(spec_file)

    current = entry.profiles.get(profile_name) or ProfileConfig()
    if profile_base:
        current.base = profile_base
    if auth:
        if auth not in runtime.context.auth:
            names = ", ".join(runtime.context.auth.schemes())
            raise InvalidUsageError(f"Unknown auth scheme '{auth}'. Available: {names}")
        params = _parse_pairs(auth_param, "=", "auth parameter")
        current.auth = AuthSetting(name=auth, params=params)
    elif auth_param:
        if current.auth is None:
            raise InvalidUsageError("--auth-param needs --auth for a profile without auth")
        current.auth.params.update(_parse_pairs(auth_param, "=", "auth parameter"))
    current.headers.update(_parse_pairs(header, ":", "header"))
    current.query.update(_parse_pairs(query, "=", "query parameter"))
    entry.profiles[profile_name] = current

    save_api(entry)
    success(f"Saved API '{name}' (profile '{profile_name}')")


@api_app.command("list")
def api_list() -> None:
    """List configured APIs."""
    from restcli.config import load_all_apis

    apis = load_all_apis()
    if not apis:
        info("No APIs configured. Run: restcli api configure <name> <base-url>")
        return
    rows = [
        [entry.name, entry.base, ", ".join(entry.profiles), ", ".join(entry.spec_files)]
        for entry in apis.values()
    ]
    print_table(["name", "base", "profiles", "spec files"], rows, title="APIs")


@api_app.command("show")
def api_show(
    name: str = typer.Argument(help="API name."),
) -> None:
    """Show the stored configuration of an API."""
    from restcli.config import load_api

    print_value(load_api(name).model_dump(mode="json", exclude_none=True))


@api_app.command("sync")
def api_sync(
    ctx: typer.Context,
    name: str = typer.Argument(help="API name."),
) -> None:
    """Fetch the API description again and list its operations."""
    runtime = get_runtime(ctx)
    if name not in runtime.apis:
        raise ConfigError(f"API '{name}' is not configured")
    config = runtime.loader.load(name, refresh=True)
    info(f"Loaded {len(config.operations)} operations from {config.description_location}")
    rows = [
        [op.name, op.method.value.upper(), op.path, op.auth_scheme or "", op.summary or ""]
        for op in config.operations
    ]
    print_table(["command", "method", "path", "auth", "summary"], rows, title=config.title)


@api_app.command("delete")
def api_delete(
    name: str = typer.Argument(help="API name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Remove a configured API."""
    from restcli.config import delete_api

    if not yes and not typer.confirm(f"Delete API '{name}'?"):
        info("Cancelled.")
        raise typer.Exit()
    delete_api(name)
    success(f"Deleted API '{name}'")
