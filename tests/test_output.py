"""Tests for restcli.output: formats, stream discipline and the global manager."""

from __future__ import annotations

import json
from typing import Any

import pytest
import yaml

from restcli.output import (
    OutputFormat,
    OutputManager,
    get_output,
    info,
    reset_output,
    set_output,
    warning,
)

NORMALIZED: dict[str, Any] = {
    "status": 200,
    "headers": {"Content-Type": "application/json"},
    "body": [{"id": 1, "name": "Rex"}, {"id": 2, "tags": ["a"]}],
    "links": {},
}


@pytest.fixture(autouse=True)
def _plain_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("TERM", raising=False)


class TestFormatResolution:
    def test_auto_is_plain_when_piped(self) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_format_kept(self) -> None:
        assert OutputManager(format=OutputFormat.YAML).format == OutputFormat.YAML

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        OutputManager().warning("careful")
        assert capsys.readouterr().err == "Warning: careful\n"


class TestFormatResponse:
    def test_json_prints_whole_response(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).format_response(NORMALIZED)
        out = capsys.readouterr().out
        assert json.loads(out) == NORMALIZED

    def test_yaml(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.YAML).format_response(NORMALIZED)
        assert yaml.safe_load(capsys.readouterr().out) == NORMALIZED

    def test_plain_prints_body_only(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response(NORMALIZED)
        assert json.loads(capsys.readouterr().out) == NORMALIZED["body"]

    def test_plain_text_body(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({**NORMALIZED, "body": "hello"})
        assert capsys.readouterr().out == "hello\n"

    def test_plain_empty_body(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({**NORMALIZED, "body": None})
        assert capsys.readouterr().out == ""

    def test_bytes_base64_in_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).format_response({**NORMALIZED, "body": b"hi"})
        assert json.loads(capsys.readouterr().out)["body"] == "aGk="

    def test_bytes_written_raw_in_plain(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({**NORMALIZED, "body": b"raw"})
        assert capsys.readouterr().out == "raw"

    def test_table(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.TABLE).format_response(NORMALIZED)
        out = capsys.readouterr().out
        for text in ("id", "name", "tags", "Rex", '["a"]'):
            assert text in out

    def test_table_falls_back_for_non_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.TABLE).format_response({**NORMALIZED, "body": {"a": 1}})
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    def test_rich_status_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response(NORMALIZED)
        out = capsys.readouterr().out
        assert "HTTP 200 OK" in out
        assert "Content-Type" in out
        assert "Rex" in out


class TestPrintTable:
    def test_plain_is_tab_separated(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).print_table(["name", "base"], [["a", "https://a"]])
        assert capsys.readouterr().out == "name\tbase\na\thttps://a\n"

    def test_json_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(["name"], [["a"], ["b"]])
        assert json.loads(capsys.readouterr().out) == [{"name": "a"}, {"name": "b"}]


class TestDiagnostics:
    def test_info_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).info("loading")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "loading\n"

    def test_quiet_suppresses_info_not_warnings(self, capsys: pytest.CaptureFixture[str]) -> None:
        manager = OutputManager(no_color=True, quiet=True)
        manager.info("loading")
        manager.success("done")
        manager.warning("careful")
        manager.error("broken")
        assert capsys.readouterr().err == "Warning: careful\nError: broken\n"

    def test_debug_needs_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        assert capsys.readouterr().err == "[debug] shown\n"


class TestGlobalManager:
    def test_lazy_default_and_reset(self) -> None:
        first = get_output()
        assert get_output() is first
        reset_output()
        assert get_output() is not first

    def test_module_functions_delegate(self, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True, quiet=True))
        info("hidden")
        warning("shown")
        assert capsys.readouterr().err == "Warning: shown\n"
