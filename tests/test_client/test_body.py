"""Tests for request bodies built from arguments and stdin."""

from __future__ import annotations

import io

import pytest

from restcli.client import build_body, parse_shorthand
from restcli.exceptions import InvalidUsageError


class _Terminal(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestParseShorthand:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ('{"name": "Kitty"}', {"name": "Kitty"}),
            ("[1, 2]", [1, 2]),
            ("{name: Kitty}", {"name": "Kitty"}),
            ("name: Kitty, age: 3", {"name": "Kitty", "age": 3}),
            ("tags: [cute, fluffy]", {"tags": ["cute", "fluffy"]}),
            ("owner: {id: 7}", {"owner": {"id": 7}}),
            ("", None),
        ],
    )
    def test_values(self, text: str, expected: object) -> None:
        assert parse_shorthand(text) == expected

    def test_invalid(self) -> None:
        with pytest.raises(InvalidUsageError, match="Cannot parse request body"):
            parse_shorthand("name: [unclosed")


class TestBuildBody:
    def test_no_arguments_no_stdin(self) -> None:
        assert build_body([]) is None

    def test_arguments_joined(self) -> None:
        assert build_body(["name: Kitty,", "age: 3"]) == {"name": "Kitty", "age": 3}

    def test_stdin_json(self) -> None:
        assert build_body([], io.StringIO('{"name": "Rex"}')) == {"name": "Rex"}

    def test_stdin_yaml(self) -> None:
        assert build_body([], io.StringIO("name: Rex\ntags:\n  - good\n")) == {
            "name": "Rex",
            "tags": ["good"],
        }

    def test_stdin_raw_bytes(self) -> None:
        assert build_body([], io.StringIO("plain words")) == b"plain words"

    def test_blank_stdin(self) -> None:
        assert build_body([], io.StringIO("  \n")) is None

    def test_terminal_not_read(self) -> None:
        assert build_body([], _Terminal('{"name": "Rex"}')) is None

    def test_arguments_merge_over_stdin_mapping(self) -> None:
        body = build_body(["name: Max"], io.StringIO('{"name": "Rex", "age": 2}'))
        assert body == {"name": "Max", "age": 2}

    def test_arguments_replace_non_mapping_stdin(self) -> None:
        assert build_body(["name: Max"], io.StringIO("[1, 2]")) == {"name": "Max"}
