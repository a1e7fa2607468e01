"""Map operation parameters to Click arguments and options.

**Mapping rules:**

* **Path parameters** become positional :class:`click.Argument` values and
  are always required.
* **Query and header parameters** become ``--option`` flags. Required
  parameters are required options; optional ones use their declared
  default or ``None``.
* **Types**: ``string`` -> ``click.STRING``, ``integer`` -> ``click.INT``,
  ``number`` -> ``click.FLOAT``, ``boolean`` -> ``click.BOOL``. Enumerated
  values become a :class:`click.Choice`. ``array`` parameters are
  repeatable options (``--tag a --tag b``); ``object`` values are passed
  through as strings.
* **Names** are sanitised to valid Python identifiers via
  :func:`sanitize_param_name`; the CLI flag keeps the original spelling
  with underscores turned into dashes.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from typing import Optional

import click

from restcli.models import OperationParam, ParameterLocation

_TYPE_MAP: dict[str, click.ParamType] = {
    "string": click.STRING,
    "integer": click.INT,
    "number": click.FLOAT,
    "boolean": click.BOOL,
}

_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")
_INVALID_FLAG_RE = re.compile(r"[^a-zA-Z0-9-]+")


def click_type_for(param: OperationParam) -> click.ParamType:
    """Return the Click type for *param*.

    Example::

        >>> click_type_for(OperationParam(name="limit", location="query", schema_type="integer"))
        INT
    """
    if param.enum_values:
        return click.Choice(param.enum_values)
    return _TYPE_MAP.get(param.schema_type, click.STRING)


def sanitize_param_name(name: str) -> str:
    """Convert a parameter name to a valid Python identifier.

    CamelCase boundaries become underscores, the result is lowercased,
    separators and other invalid characters become underscores, a leading
    digit gets an underscore prefix and Python keywords get a trailing one.

    Example::

        >>> sanitize_param_name("petId")
        'pet_id'
        >>> sanitize_param_name("X-Request-ID")
        'x_request_id'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower().replace("-", "_").replace(".", "_")
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def option_flag(name: str) -> str:
    """``page_size`` -> ``--page-size``; ``X-Trace`` -> ``--x-trace``."""
    flag = _INVALID_FLAG_RE.sub("-", name.replace("_", "-")).strip("-").lower()
    return f"--{flag or 'param'}"


def help_for(param: OperationParam) -> Optional[str]:
    text = param.description or ""
    if param.location == ParameterLocation.HEADER:
        text = f"{text}  [header: {param.name}]" if text else f"[header: {param.name}]"
    return text or None


@dataclass
class MappedParam:
    """A Click parameter together with where its value is sent."""

    dest: str
    param: OperationParam
    click_param: click.Parameter


class ParamMapper:
    """Builds Click parameters for one operation, keeping names unique.

    Path and query parameters may share a name; the second one gets a
    location prefix (``--query-id``, ``query_id``) so both stay reachable.
    """

    def __init__(self, reserved: tuple[str, ...] = ()) -> None:
        self._dests: set[str] = set(reserved)
        self._flags: set[str] = set()

    def map(self, param: OperationParam) -> MappedParam:
        dest = self._unique_dest(param)
        if param.location == ParameterLocation.PATH:
            click_param: click.Parameter = click.Argument(
                [dest], type=click_type_for(param), required=True
            )
        else:
            flag = self._unique_flag(param)
            multiple = param.schema_type == "array"
            default = param.default
            if multiple:
                default = tuple(default) if isinstance(default, list) else ()
            click_param = click.Option(
                [flag, dest],
                type=click_type_for(param),
                required=param.required,
                default=default,
                multiple=multiple,
                show_default=default not in (None, ()),
                help=help_for(param),
            )
        return MappedParam(dest=dest, param=param, click_param=click_param)

    def _unique_dest(self, param: OperationParam) -> str:
        dest = sanitize_param_name(param.name)
        if dest in self._dests:
            dest = f"{param.location.value}_{dest}"
        while dest in self._dests:
            dest = f"{dest}_"
        self._dests.add(dest)
        return dest

    def _unique_flag(self, param: OperationParam) -> str:
        flag = option_flag(param.name)
        if flag in self._flags:
            flag = f"--{param.location.value}-{flag[2:]}"
        while flag in self._flags:
            flag = f"{flag}-"
        self._flags.add(flag)
        return flag
