from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

DEFAULT_DATA_DIR = "~/.local/share/recipe-manager"
DEFAULT_AUTH_URL = "http://localhost:5000/api"
DEFAULT_DATABASE_URL = "sqlite:///recipe_manager.db"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    auth_url: str = DEFAULT_AUTH_URL
    request_timeout: float = 10.0
    database_url: str = DEFAULT_DATABASE_URL
    secret_key: str = "development-secret-change-me"
    cors_origin: str = "*"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""

        data_dir = Path(os.path.expanduser(os.environ.get("RECIPE_MANAGER_DATA_DIR", DEFAULT_DATA_DIR)))
        auth_url = os.environ.get("RECIPE_MANAGER_AUTH_URL", DEFAULT_AUTH_URL).rstrip("/")

        raw_timeout = os.environ.get("RECIPE_MANAGER_TIMEOUT", "10")
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(f"RECIPE_MANAGER_TIMEOUT must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ConfigError("RECIPE_MANAGER_TIMEOUT must be positive")

        log_level = os.environ.get("RECIPE_MANAGER_LOG_LEVEL", "WARNING").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Unknown log level: {log_level!r}")

        return cls(
            data_dir=data_dir,
            auth_url=auth_url,
            request_timeout=timeout,
            database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            secret_key=os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me"),
            cors_origin=os.environ.get("CORS_ALLOW_ORIGIN", "*"),
            log_level=log_level,
        )


__all__ = ["Settings"]
