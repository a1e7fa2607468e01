"""Output formatting with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- response data only. This is what downstream tools pipe
  and parse.
* **stderr** -- diagnostics (status, warnings, errors, debug output).
* **TTY detection** -- ``auto`` renders the status line, headers and a
  highlighted body when stdout is an interactive terminal, and only the
  body when piped.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and the
  ``--no-color`` flag.

Responses arrive in their normalized form,
``{"status", "headers", "body", "links"}``, as produced by
:meth:`~restcli.client.response.ParsedResponse.normalized`.

The module exposes two layers:

1. :class:`OutputManager` -- holds the format, the Rich consoles and the
   quiet/verbose flags. Created once by the root CLI callback and installed
   via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`warning`,
   :func:`debug` ...) that delegate to the installed manager.
"""

from __future__ import annotations

import base64
import json
import os
import sys
from enum import Enum
from http import HTTPStatus
from typing import Any, Optional

import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported response output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` (body only) otherwise. ``JSON`` and
    ``YAML`` print the whole normalized response; ``TABLE`` renders a list
    body as a table.
    """

    AUTO = "auto"
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, normalized: dict[str, Any]) -> None:
        """Render a normalized response to stdout in the active format.

        Args:
            normalized: ``{"status", "headers", "body", "links"}``.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(_jsonable(normalized)))
        elif self._format == OutputFormat.YAML:
            self.print_data(_to_yaml(_jsonable(normalized)))
        elif self._format == OutputFormat.TABLE:
            self._print_body_table(normalized.get("body"))
        elif self._format == OutputFormat.PLAIN:
            self._print_body(normalized.get("body"))
        else:
            self._print_rich(normalized)

    def print_value(self, value: Any) -> None:
        """Render a structured value without a status line or headers."""
        if self._format == OutputFormat.YAML:
            self.print_data(_to_yaml(_jsonable(value)))
        elif self._format == OutputFormat.TABLE:
            self._print_body_table(value)
        elif self._format == OutputFormat.RICH and isinstance(value, (dict, list)):
            self._stdout.print(
                Syntax(_to_json(_jsonable(value)), "json", theme="monokai", word_wrap=True)
            )
        else:
            self._print_body(value)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout with a trailing newline."""
        print(text, file=sys.stdout, flush=True)

    def print_bytes(self, data: bytes) -> None:
        """Write binary data to stdout unchanged."""
        stream = getattr(sys.stdout, "buffer", None)
        if stream is None:
            self.print_data(data.decode("utf-8", errors="replace"))
            return
        sys.stdout.flush()
        stream.write(data)
        stream.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich and table modes** -- a styled :class:`~rich.table.Table`.
        * **JSON mode** -- an array of objects keyed by header names.
        * **YAML mode** -- the same records as YAML.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
        elif self._format == OutputFormat.YAML:
            self.print_data(_to_yaml([dict(zip(headers, row)) for row in rows]))
        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, "")

    def success(self, message: str) -> None:
        """Green success message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, "green")

    def warning(self, message: str) -> None:
        """Yellow warning. NOT suppressed by ``--quiet``."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {message}", markup=True, highlight=False)

    def error(self, message: str) -> None:
        """Bold-red error. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(
                f"[bold red]Error:[/bold red] {message}", markup=True, highlight=False
            )

    def debug(self, message: str) -> None:
        """Debug message, only shown with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", "dim")

    def _emit(self, message: str, style: str) -> None:
        if self._no_color or not style:
            print(message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(message, style=style, markup=False, highlight=False)

    # ------------------------------------------------------------------ #
    # Private renderers
    # ------------------------------------------------------------------ #

    def _print_body(self, body: Any) -> None:
        if body is None:
            return
        if isinstance(body, bytes):
            self.print_bytes(body)
        elif isinstance(body, str):
            self.print_data(body)
        else:
            self.print_data(_to_json(_jsonable(body)))

    def _print_body_table(self, body: Any) -> None:
        rows = body if isinstance(body, list) else None
        if not rows or not all(isinstance(row, dict) for row in rows):
            self._print_body(body)
            return
        headers: list[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)
        self.print_table(
            headers,
            [[_cell(row.get(h)) for h in headers] for row in rows],
        )

    def _print_rich(self, normalized: dict[str, Any]) -> None:
        status = normalized.get("status", 0)
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = ""
        color = "green" if 200 <= status < 300 else "yellow" if status < 400 else "red"
        self._stdout.print(f"[bold {color}]HTTP {status} {phrase}[/]".rstrip())
        for name, value in normalized.get("headers", {}).items():
            self._stdout.print(f"[cyan]{name}[/]: {value}", highlight=False)
        body = normalized.get("body")
        if body is None:
            return
        self._stdout.print()
        if isinstance(body, bytes):
            self._stdout.print(f"[dim]<{len(body)} bytes of binary data>[/dim]")
        elif isinstance(body, str):
            self._stdout.print(body, markup=False, highlight=False)
        else:
            syntax = Syntax(_to_json(_jsonable(body)), "json", theme="monokai", word_wrap=True)
            self._stdout.print(syntax)


def _jsonable(value: Any) -> Any:
    """Make *value* serialisable: bytes become base64 text."""
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _to_yaml(value: Any) -> str:
    return yaml.safe_dump(value, sort_keys=False, allow_unicode=True).rstrip("\n")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Used by the test suite between tests."""
    global _output
    _output = None


def format_response(normalized: dict[str, Any]) -> None:
    get_output().format_response(normalized)


def print_value(value: Any) -> None:
    get_output().print_value(value)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
