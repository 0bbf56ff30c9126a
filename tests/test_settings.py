"""Typed smoke tests for the settings loader.

These tests verify four guarantees:
1) Importing the module-level `settings` yields a `Settings` instance.
2) Environment variables override defaults after clearing the loader cache.
3) Invalid capture knobs are rejected at load time.
4) `get_logger()` respects the configured LOG_LEVEL when constructing loggers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from livecast.core.settings import (
    Settings,
    get_logger,
    load_settings,
    settings,
)


def test_settings_instance_type() -> None:
    """`settings` should be an instance of the typed `Settings` model."""
    assert isinstance(settings, Settings)


def test_defaults_match_live_view_policy(monkeypatch: Any) -> None:
    """Defaults: 10 files, 3s timeout, 2s interval, screenshots off."""
    for var in (
        "LIVECAST_MAX_ARTIFACTS",
        "LIVECAST_CAPTURE_TIMEOUT_SECS",
        "LIVECAST_MIN_INTERVAL_SECS",
        "LIVECAST_USE_SCREENSHOTS",
    ):
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None)

    assert s.max_retained_artifacts == 10
    assert s.capture_timeout_secs == 3.0
    assert s.min_capture_interval_secs == 2.0
    assert s.use_screenshots is False
    assert s.screenshot_quality == 75


def test_env_overrides_with_cache_clear(monkeypatch: Any, tmp_path: Path) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("LIVECAST_ENV", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LIVECAST_PORT", "5555")
    monkeypatch.setenv("LIVECAST_ARTIFACT_DIR", str(tmp_path / "shots"))
    monkeypatch.setenv("LIVECAST_USE_SCREENSHOTS", "true")

    load_settings.cache_clear()
    try:
        s = load_settings()
        assert s.environment == "test"
        assert s.log_level == "DEBUG"
        assert s.port == 5555
        assert s.artifact_dir == tmp_path / "shots"
        assert s.use_screenshots is True
    finally:
        monkeypatch.undo()
        load_settings.cache_clear()


def test_invalid_port_is_rejected(monkeypatch: Any) -> None:
    """Ports outside 0..65535 fail validation instead of failing at bind time."""
    monkeypatch.setenv("LIVECAST_PORT", "70000")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_public_url_is_read_from_env(monkeypatch: Any) -> None:
    """`LIVECAST_PUBLIC_URL` populates `public_url`; unset means None."""
    assert Settings(_env_file=None).public_url is None
    monkeypatch.setenv("LIVECAST_PUBLIC_URL", "https://live.example.com")
    assert Settings(_env_file=None).public_url == "https://live.example.com"


def test_get_logger_respects_level(monkeypatch: Any) -> None:
    """`get_logger()` should apply the numeric level derived from `LOG_LEVEL`."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    load_settings.cache_clear()
    try:
        logger = get_logger("livecast.tests.settings")
        assert logger.level == logging.ERROR
        assert logger.handlers, "Expected at least one StreamHandler to be attached."
    finally:
        monkeypatch.undo()
        load_settings.cache_clear()
