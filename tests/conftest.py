"""Shared test fixtures for specmodel.

Provides reusable fixtures for loading document fixtures, creating isolated
config environments, managing output and logging state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest
import yaml

from specmodel.models import DescriptorSet
from specmodel.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and CLI log handler after every test.

    Both cache references to sys.stdout/sys.stderr at creation time. When
    Typer's CliRunner redirects those streams during a test and the test
    finishes, the cached references become stale ("I/O operation on
    closed file"). Resetting forces fresh ones on next use.
    """
    yield
    reset_output()
    package_logger = logging.getLogger("specmodel")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_specmodel_cli", False):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from fixture files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_30_raw() -> dict[str, Any]:
    """Load the raw petstore 3.0 document."""
    with open(FIXTURES_DIR / "petstore_3.0.json") as f:
        return json.load(f)


@pytest.fixture
def cyclic_31_raw() -> dict[str, Any]:
    """Load the raw 3.1 document with self and mutual cycles."""
    with open(FIXTURES_DIR / "cyclic_3.1.json") as f:
        return json.load(f)


@pytest.fixture
def swagger_20_raw() -> dict[str, Any]:
    """Load the raw Swagger 2.0 document."""
    with open(FIXTURES_DIR / "swagger_2.0.yaml") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# Descriptor fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_descriptors(petstore_30_raw: dict[str, Any]) -> DescriptorSet:
    """Descriptors built from the petstore 3.0 document, without caching."""
    from specmodel.parser import parse_spec

    return parse_spec(petstore_30_raw)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears the SPECMODEL_* override variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["SPECMODEL_STRICTNESS", "SPECMODEL_CACHE_TTL"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
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
