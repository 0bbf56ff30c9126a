"""
Smoke tests for package structure and availability.

Scope
-----
These tests strictly verify that the package is installed correctly in the
environment and that top-level modules are importable.
"""

from __future__ import annotations

import importlib

from livecast import __version__


def test_package_importable() -> None:
    """Ensure the top-level package can be imported."""
    mod = importlib.import_module("livecast")
    assert mod is not None


def test_version_is_set() -> None:
    """Ensure the package exposes a valid version string."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0


def test_api_app_importable_first() -> None:
    """The API module must import on its own (no cycle through the live core)."""
    mod = importlib.import_module("livecast.api.app")
    assert hasattr(mod, "create_app")


def test_cli_module_exposes_app() -> None:
    """
    Ensure the CLI module exposes the Typer 'app' object.

    The presence of 'app' is required for the entry point defined in
    pyproject.toml (`livecast.cli:app`).
    """
    cli = importlib.import_module("livecast.cli")
    assert hasattr(cli, "app"), "livecast.cli must expose an 'app' Typer object."
