"""Shared test fixtures for oagraph.

Provides reusable fixtures for loading document fixtures, building small
inline documents, creating isolated config environments, managing output
state, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import pytest

from oagraph.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_document(
    paths: Optional[dict[str, Any]] = None,
    schemas: Optional[dict[str, Any]] = None,
    tags: Optional[list[dict[str, Any]]] = None,
    **components: Any,
) -> dict[str, Any]:
    """Build a minimal OpenAPI 3.1 document around *paths* and *schemas*."""
    doc: dict[str, Any] = {
        "openapi": "3.1.0",
        "info": {"title": "Test", "version": "1.0.0"},
        "paths": paths or {},
    }
    if tags is not None:
        doc["tags"] = tags
    comps = dict(components)
    if schemas:
        comps["schemas"] = schemas
    if comps:
        doc["components"] = comps
    return doc


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``oagraph`` logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, and the CLI callback installs a non-propagating handler
    on the ``oagraph`` logger. Both would leak into later tests.
    """
    yield
    reset_output()
    logger = logging.getLogger("oagraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore 3.1 document."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def tree_raw() -> dict[str, Any]:
    """Load the raw self-referential tree document."""
    with open(FIXTURES_DIR / "tree.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_path() -> str:
    return str(FIXTURES_DIR / "petstore.json")


@pytest.fixture
def make_doc():
    """The :func:`make_document` builder, for tests that assemble inline documents."""
    return make_document


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all OAGRAPH_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("oagraph.config._is_xdg_platform", lambda: True)

    for var in ["OAGRAPH_ROLE", "OAGRAPH_ALL_MODELS"]:
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


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
