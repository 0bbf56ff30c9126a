"""Centralized Livecast configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

Every capture knob of the live view (retention, timeout, throttle, screenshots)
is a field here so hosts can tune it without code changes. The prompt action
handler mapping is the one option that is passed programmatically instead.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_ARTIFACT_DIR = Path("storage") / "live_view"


class Settings(BaseSettings):
    """Typed Livecast configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `LIVECAST_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    host, port : str, int
        Where the listener binds; `port` must be a valid TCP port.
    public_url : str | None
        URL advertised to operators. Defaults to ``http://localhost:<port>``.
    cors_origins : list[str]
        Origins allowed to fetch screenshots; a JSON list in the environment.
    artifact_dir : Path
        Directory holding screenshot files named ``<index>.jpeg``.
    max_retained_artifacts : int
        Upper bound on screenshot files kept on disk.
    capture_timeout_secs : float
        A capture that takes longer than this is abandoned.
    min_capture_interval_secs : float
        Minimum age of the last snapshot before a new capture is admitted.
    use_screenshots : bool
        Whether captures include a JPEG screenshot at all.
    screenshot_quality : int
        JPEG quality requested from the page handle.
    push_last_on_connect : bool
        Resend the last snapshot to an observer as soon as it connects.
    subscriber_queue_size : int
        Bound of each observer's outbound queue; the oldest entry is dropped
        when a slow observer falls behind.
    """

    environment: EnvName = Field(default="dev", alias="LIVECAST_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    host: str = Field(default="0.0.0.0", alias="LIVECAST_HOST")
    port: int = Field(default=4321, ge=0, le=65535, alias="LIVECAST_PORT")
    public_url: str | None = Field(default=None, alias="LIVECAST_PUBLIC_URL")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], alias="LIVECAST_CORS_ORIGINS")

    artifact_dir: Path = Field(default=DEFAULT_ARTIFACT_DIR, alias="LIVECAST_ARTIFACT_DIR")
    max_retained_artifacts: int = Field(default=10, ge=1, alias="LIVECAST_MAX_ARTIFACTS")
    capture_timeout_secs: float = Field(default=3.0, gt=0, alias="LIVECAST_CAPTURE_TIMEOUT_SECS")
    min_capture_interval_secs: float = Field(default=2.0, ge=0, alias="LIVECAST_MIN_INTERVAL_SECS")
    use_screenshots: bool = Field(default=False, alias="LIVECAST_USE_SCREENSHOTS")
    screenshot_quality: int = Field(default=75, ge=1, le=100, alias="LIVECAST_SCREENSHOT_QUALITY")
    push_last_on_connect: bool = Field(default=False, alias="LIVECAST_PUSH_LAST_ON_CONNECT")
    subscriber_queue_size: int = Field(default=16, ge=1, alias="LIVECAST_QUEUE_SIZE")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("LIVECAST_ENV", "dev")
    return Settings()


# Ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "livecast") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["Settings", "load_settings", "settings", "get_logger"]
