"""Request bodies from CLI arguments and standard input.

Positional arguments after the address form the body:

* text starting with ``{`` or ``[`` is parsed as JSON (falling back to YAML
  flow syntax, which also accepts unquoted keys);
* anything else is shorthand, a YAML flow mapping without the braces:
  ``name: Kitty, tags: [cute, fluffy], age: 3``.

When standard input is not a terminal its content is the body: JSON or
YAML documents are parsed, anything else is sent as raw bytes. Shorthand
arguments are merged over a mapping read from stdin.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence, TextIO

import yaml

from restcli.exceptions import InvalidUsageError


def parse_shorthand(text: str) -> Any:
    """Parse one body argument string.

    Raises:
        InvalidUsageError: If the text is neither JSON nor valid shorthand.
    """
    text = text.strip()
    if not text:
        return None
    if text[0] in "{[":
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            source = text
    else:
        source = "{" + text + "}"
    try:
        return yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise InvalidUsageError(f"Cannot parse request body '{text}': {exc}") from exc


def read_stdin_body(stream: TextIO) -> Any:
    """Read a body from a non-interactive *stream*; ``None`` when empty."""
    if stream.isatty():
        return None
    content = stream.read()
    if not content.strip():
        return None
    try:
        value = yaml.safe_load(content)
    except yaml.YAMLError:
        return content.encode("utf-8")
    if isinstance(value, (dict, list)):
        return value
    return content.encode("utf-8")


def build_body(args: Sequence[str], stdin: Optional[TextIO] = None) -> Any:
    """Combine stdin and argument shorthand into one body value.

    Returns:
        ``None`` when there is no body, ``bytes`` for raw stdin content,
        otherwise the parsed value.
    """
    data = read_stdin_body(stdin) if stdin is not None else None
    if not args:
        return data

    value = parse_shorthand(" ".join(args))
    if isinstance(data, dict) and isinstance(value, dict):
        return {**data, **value}
    return value
