"""Shared test fixtures for restcli.

Provides reusable fixtures for the petstore API description, isolated
config environments, output state and pipeline contexts. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from restcli.client import PipelineContext, default_builder
from restcli.models import APIEntry, PipelineSettings
from restcli.output import OutputFormat, OutputManager, reset_output, set_output

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When the CliRunner redirects those streams during a
    test, the cached references become stale once it finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# API description fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore OpenAPI 3.0 document."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_text(petstore_raw: dict[str, Any]) -> str:
    return json.dumps(petstore_raw)


# ---------------------------------------------------------------------------
# Pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def context() -> PipelineContext:
    """A frozen pipeline context with only the built-in components."""
    return default_builder().build()


@pytest.fixture
def petstore_entry() -> APIEntry:
    """A configured petstore API without auth."""
    return APIEntry(name="petstore", base="https://petstore.example.com/v1")


@pytest.fixture
def settings() -> PipelineSettings:
    return PipelineSettings()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all RESTCLI_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("restcli.config._is_xdg_platform", lambda: True)

    for var in [
        "RESTCLI_PROFILE",
        "RESTCLI_SERVER_OVERRIDE",
        "RESTCLI_NO_CACHE",
        "RESTCLI_INSECURE",
        "RESTCLI_CLIENT_CERT",
        "RESTCLI_CLIENT_KEY",
        "RESTCLI_CA_CERT",
        "RESTCLI_NO_PAGINATE",
        "RESTCLI_TIMEOUT",
        "RESTCLI_MAX_PAGES",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
