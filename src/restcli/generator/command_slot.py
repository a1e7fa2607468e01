"""Materialise operations as Click commands.

A :class:`CommandSlot` wraps the Click group of one API. The description
loader calls :meth:`CommandSlot.register_command` for every operation; the
generated command parses its parameters and hands an
:class:`OperationCall` to the runner supplied by the application, which
sends the request through the pipeline.

Example::

    group = click.Group("petstore")
    slot = CommandSlot(group, runner=print)
    slot.register_command("get-pet", operation)
    # restcli petstore get-pet 42 --fields name
"""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping
from urllib.parse import quote

import click

from restcli.exceptions import InvalidUsageError
from restcli.generator.param_mapper import MappedParam, ParamMapper
from restcli.models import Operation, ParameterLocation

logger = logging.getLogger(__name__)

_BODY_DEST = "body_args"


@dataclass
class OperationCall:
    """One invocation of a generated command.

    Attributes:
        operation: The operation being called.
        path: The path with parameters substituted, relative to the API base.
        query: Query parameter values; ``None`` values are omitted.
        headers: Header parameter values.
        body_args: Remaining positional arguments (body shorthand).
    """

    operation: Operation
    path: str
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body_args: tuple[str, ...] = ()


OperationRunner = Callable[[OperationCall], None]


def expand_path(template: str, values: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with percent-encoded *values*.

    Example::

        >>> expand_path("/pets/{petId}", {"petId": "a b"})
        '/pets/a%20b'
    """
    path = template
    for name, value in values.items():
        path = path.replace("{" + name + "}", quote(_as_text(value), safe=""))
    return path


def read_body_args(args: tuple[str, ...]) -> tuple[str, ...]:
    """Replace ``@filename`` arguments with the file's content."""
    resolved: list[str] = []
    for arg in args:
        if arg.startswith("@") and len(arg) > 1:
            path = Path(arg[1:]).expanduser()
            try:
                resolved.append(path.read_text(encoding="utf-8"))
            except OSError as exc:
                raise InvalidUsageError(f"Cannot read body file {path}: {exc}") from exc
        else:
            resolved.append(arg)
    return tuple(resolved)


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_help_text(operation: Operation) -> str:
    """Compose help from the deprecation flag, summary and description."""
    parts: list[str] = []
    if operation.deprecated:
        parts.append("[DEPRECATED]")
    if operation.summary:
        parts.append(operation.summary)
    elif operation.description:
        first_line = operation.description.split("\n", 1)[0]
        parts.append(textwrap.shorten(first_line, width=80))
    if operation.description and operation.summary:
        parts.append("")
        parts.append(operation.description)
    return "\n".join(parts) if parts else f"{operation.method.value.upper()} {operation.path}"


class CommandSlot:
    """Registers operations as commands on a Click group.

    Args:
        group: The group that receives the commands, one per API.
        runner: Called with an :class:`OperationCall` when a command runs.
    """

    def __init__(self, group: click.Group, runner: OperationRunner) -> None:
        self._group = group
        self._runner = runner

    @property
    def group(self) -> click.Group:
        return self._group

    def register_command(self, name: str, operation: Operation) -> click.Command:
        """Add a command for *operation* under *name*.

        An existing command with the same name is kept and returned.
        """
        existing = self._group.commands.get(name)
        if existing is not None:
            logger.warning("Command '%s' already exists in '%s'", name, self._group.name)
            return existing

        mapper = ParamMapper(reserved=(_BODY_DEST,))
        mapped = [mapper.map(p) for p in operation.params_in(ParameterLocation.PATH)]
        mapped += [mapper.map(p) for p in operation.params_in(ParameterLocation.QUERY)]
        mapped += [mapper.map(p) for p in operation.params_in(ParameterLocation.HEADER)]

        params = [m.click_param for m in mapped]
        if operation.accepts_body:
            params.append(
                click.Argument(
                    [_BODY_DEST],
                    nargs=-1,
                    required=operation.body_required,
                    metavar="[BODY]...",
                )
            )

        command = click.Command(
            name,
            callback=self._make_callback(operation, mapped),
            params=params,
            help=build_help_text(operation),
            short_help=operation.summary,
            deprecated=operation.deprecated,
        )
        self._group.add_command(command)
        return command

    def _make_callback(self, operation: Operation, mapped: list[MappedParam]) -> Callable[..., None]:
        runner = self._runner

        def callback(**values: Any) -> None:
            path_values: dict[str, Any] = {}
            call = OperationCall(operation=operation, path=operation.path)
            for item in mapped:
                value = values.get(item.dest)
                location = item.param.location
                if location == ParameterLocation.PATH:
                    path_values[item.param.name] = value
                elif value is None or value == ():
                    continue
                elif location == ParameterLocation.QUERY:
                    call.query[item.param.name] = list(value) if isinstance(value, tuple) else value
                else:
                    if isinstance(value, tuple):
                        value = ",".join(_as_text(v) for v in value)
                    call.headers[item.param.name] = _as_text(value)
            call.path = expand_path(operation.path, path_values)
            call.body_args = read_body_args(tuple(values.get(_BODY_DEST) or ()))
            runner(call)

        return callback
