"""
Configuration - Settings read from the environment.

Environment variables:
    HUGOLAND_ENV                       deployment name (default: development)
    HUGOLAND_SAVE_DIR                  directory for saved games (default: ~/.hugoland)
    HUGOLAND_STORAGE_KEY               key of the saved snapshot
    HUGOLAND_PERSIST_DEBOUNCE_SECONDS  quiet period before a save
    HUGOLAND_MARKET_POLL_SECONDS       market refresh poll interval
    HUGOLAND_LOG_LEVEL                 logging level name
    ALLOWED_ORIGINS                    comma separated CORS origins
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .session.store import DEFAULT_STORAGE_KEY

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class EngineSettings:
    env: str = "development"
    save_dir: Path = field(default_factory=lambda: Path.home() / ".hugoland")
    storage_key: str = DEFAULT_STORAGE_KEY
    persist_debounce_seconds: float = 1.0
    market_poll_seconds: float = 10.0
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        env = os.environ if environ is None else environ
        defaults = cls()
        save_dir = env.get("HUGOLAND_SAVE_DIR")
        return cls(
            env=env.get("HUGOLAND_ENV", defaults.env),
            save_dir=Path(save_dir).expanduser() if save_dir else defaults.save_dir,
            storage_key=env.get("HUGOLAND_STORAGE_KEY", defaults.storage_key),
            persist_debounce_seconds=float(
                env.get("HUGOLAND_PERSIST_DEBOUNCE_SECONDS", defaults.persist_debounce_seconds)
            ),
            market_poll_seconds=float(
                env.get("HUGOLAND_MARKET_POLL_SECONDS", defaults.market_poll_seconds)
            ),
            log_level=env.get("HUGOLAND_LOG_LEVEL", defaults.log_level).upper(),
            allowed_origins=[
                origin.strip()
                for origin in env.get("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )


def configure_logging(level: str | int = "INFO"):
    """Configure root logging once for the CLI and the API server."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
