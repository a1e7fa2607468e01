"""Typer application and CLI entry point for restcli.

This module wires the root Typer application: global options, the built-in
commands (``get`` ... ``delete``, ``links``, ``cert``, ``api``) and one
lazily loaded command group per configured API, whose commands are
synthesised from the API's description the first time the group is used.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs the SIGINT handler, builds the command
tree and maps :class:`~restcli.exceptions.RestcliError` to exit codes.
Unexpected exceptions are written to a crash log under the data directory.

See Also:
    :mod:`restcli.runtime`: Per-invocation state created by the root callback.
    :mod:`restcli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Iterable, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from restcli import __version__
from restcli.cancel import CancelToken
from restcli.commands.api import api_app
from restcli.commands.cert import cert_command
from restcli.commands.links import links_command
from restcli.commands.verbs import register as register_verbs
from restcli.exceptions import ConfigError, DescriptionError, NoCodecError, RestcliError
from restcli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE
from restcli.generator import CommandSlot, OperationCall, OperationRunner
from restcli.output import OutputFormat, OutputManager, error, get_output, set_output, warning
from restcli.runtime import Runtime

app = typer.Typer(
    name="restcli",
    help="A command-line client for REST-ish HTTP APIs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"restcli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="API profile to use."),
    server: Optional[str] = typer.Option(
        None, "--server", "-s", help="Replace the scheme and host of every request."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra request header, Name: value. Repeatable."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Extra query parameter, name=value. Repeatable."
    ),
    no_paginate: bool = typer.Option(False, "--no-paginate", help="Do not follow next links."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS verification."),
    client_cert: Optional[str] = typer.Option(None, "--client-cert", help="TLS client certificate."),
    client_key: Optional[str] = typer.Option(None, "--client-key", help="TLS client key."),
    ca_cert: Optional[str] = typer.Option(None, "--ca-cert", help="Extra CA bundle to trust."),
    output_format: Optional[OutputFormat] = typer.Option(
        None, "--output-format", "-o", help="Output format.", case_sensitive=False
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress non-essential output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Pagination ceiling."),
) -> None:
    """Root callback executed before every sub-command.

    Builds the :class:`~restcli.runtime.Runtime` from the global options and
    installs it as the context object, then sets up output and logging.

    Tests and embedders may pass a dict as ``obj`` with ``cancel``,
    ``transport`` (an httpx transport), ``builder`` or ``config`` entries;
    they are handed to the runtime.
    """
    options: dict[str, Any] = ctx.obj if isinstance(ctx.obj, dict) else {}
    flags = {
        "profile": profile,
        "server-override": server,
        "headers[]": header,
        "query[]": query,
        "no-paginate": no_paginate,
        "no-cache": no_cache,
        "insecure": insecure,
        "client-cert": client_cert,
        "client-key": client_key,
        "ca-cert": ca_cert,
        "timeout": timeout,
        "max-pages": max_pages,
        "verbose": verbose,
    }
    runtime = Runtime(
        flags,
        options.get("config"),
        cancel=options.get("cancel"),
        http_transport=options.get("transport"),
        builder=options.get("builder"),
    )

    try:
        fmt = output_format or OutputFormat(runtime.config.output.format)
    except ValueError:
        raise ConfigError(
            f"Invalid output format '{runtime.config.output.format}' in global config"
        ) from None
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose, no_color)

    ctx.obj = runtime
    ctx.call_on_close(runtime.close)


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Route ``restcli.*`` log records to stderr through Rich."""
    logger = logging.getLogger("restcli")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


app.command("links")(links_command)
app.command("cert")(cert_command)
app.add_typer(api_app, name="api", help="Manage configured APIs and profiles.")
register_verbs(app)


# ------------------------------------------------------------------ #
# API command groups
# ------------------------------------------------------------------ #


class APIGroup(click.Group):
    """Command group of one configured API, filled from its description on first use."""

    def __init__(self, name: str, **attrs: Any) -> None:
        attrs.setdefault("help", f"Operations of the '{name}' API.")
        super().__init__(name=name, **attrs)
        self._loaded = False

    def list_commands(self, ctx: click.Context) -> list[str]:
        self._load(ctx)
        return super().list_commands(ctx)

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        self._load(ctx)
        return super().get_command(ctx, cmd_name)

    def _load(self, ctx: click.Context) -> None:
        if self._loaded:
            return
        runtime = ctx.find_object(Runtime)
        if runtime is None:
            return
        self._loaded = True
        slot = CommandSlot(self, operation_runner(runtime, self.name or ""))
        try:
            runtime.loader.load(self.name or "", slot)
        except DescriptionError as exc:
            warning(f"Could not load commands for '{self.name}': {exc}")


def operation_runner(runtime: Runtime, api_name: str) -> OperationRunner:
    """Return the runner generated commands of *api_name* call."""

    def run(call: OperationCall) -> None:
        operation = call.operation
        content_type = operation.body_media_type
        if content_type:
            try:
                runtime.context.content_types.select_for_request(content_type)
            except NoCodecError:
                content_type = None
        result = runtime.request(
            operation.method.value.upper(),
            api_name + call.path,
            call.body_args,
            headers=call.headers,
            params=call.query,
            content_type=content_type,
        )
        runtime.show(result)

    return run


def create_cli(apis: Optional[Iterable[str]] = None) -> click.Group:
    """Build the Click command tree: built-in commands plus one group per API.

    Args:
        apis: API names to add groups for; the configured APIs when ``None``.
    """
    from restcli.config import list_apis

    cli = typer.main.get_command(app)
    assert isinstance(cli, click.Group)
    for name in list_apis() if apis is None else apis:
        if name in cli.commands:
            warning(f"API '{name}' is shadowed by the built-in '{name}' command")
            continue
        cli.add_command(APIGroup(name))
    return cli


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers(cancel: CancelToken) -> None:
    """First Ctrl-C cancels the running request; the second exits at once."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        if cancel.cancelled:
            sys.stderr.write("\nCancelled.\n")
            sys.exit(EXIT_CANCELLED)
        sys.stderr.write("\nCancelling... (press Ctrl-C again to quit)\n")
        cancel.cancel()

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from restcli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``restcli`` console script.

    :class:`~restcli.exceptions.RestcliError` instances cause a clean exit
    with the error's ``exit_code``. All other exceptions produce a crash log
    and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Click or explicitly).
    """
    cancel = CancelToken()
    _setup_signal_handlers(cancel)
    try:
        try:
            cli = create_cli()
        except ConfigError as exc:
            get_output().warning(f"{exc}; API commands are unavailable")
            cli = create_cli(apis=())
        cli.main(prog_name="restcli", obj={"cancel": cancel})
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except RestcliError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
