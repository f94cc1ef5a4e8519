"""
Configuration - application settings and the persisted user configuration.

Settings (data directory, database path, log level) come from the
environment. The user configuration (Steam ID, API keys) lives in the
local store and is layered over environment fallbacks by ConfigResolver.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from nesta.core.db import Database
from nesta.core.db.models import UserConfig

logger = logging.getLogger("nesta.config")

__all__ = [
    "API_KEY_ENV_VARS",
    "OPENROUTER_ENV_VAR",
    "STEAM_ID_ENV_VARS",
    "ConfigResolver",
    "MissingConfigError",
    "Settings",
    "require_complete",
]

# Checked in order, first non-empty value wins
STEAM_ID_ENV_VARS: tuple[str, ...] = ("STEAM_ID", "STEAMID64", "STEAM_ID64", "STEAM_STEAMID")
API_KEY_ENV_VARS: tuple[str, ...] = ("STEAM_API_KEY", "STEAM_WEB_API_KEY", "STEAMKEY")
OPENROUTER_ENV_VAR = "OPENROUTER_API_KEY"


class MissingConfigError(Exception):
    """Required user configuration is absent.

    Attributes:
        missing: Names of the missing fields, a non-empty subset of
            ``("steam_id", "api_key")``.
    """

    def __init__(self, missing: tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__(f"Missing configuration: {', '.join(missing)}")


def require_complete(user_config: UserConfig) -> UserConfig:
    """Returns ``user_config`` unchanged if Steam ID and API key are set.

    Raises:
        MissingConfigError: Naming whichever of the two is missing.
    """
    missing = user_config.missing_fields()
    if missing:
        raise MissingConfigError(missing)
    return user_config


@dataclass
class Settings:
    """
    Process-level settings for the application.
    Manages the data directory, database location and log level.
    """

    DATA_DIR: Path = field(default_factory=lambda: Path.home() / ".nesta")
    DB_PATH: Path | None = None
    LOG_LEVEL: str = "WARNING"
    LOG_FILE: Path | None = None

    def __post_init__(self) -> None:
        """Derive the database path from the data directory if unset."""
        if self.DB_PATH is None:
            self.DB_PATH = self.DATA_DIR / "nesta.db"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``NESTA_*`` environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``.
        """
        env = os.environ if environ is None else environ

        data_dir = Path(env["NESTA_DATA_DIR"]).expanduser() if env.get("NESTA_DATA_DIR") else None
        db_path = Path(env["NESTA_DB_PATH"]).expanduser() if env.get("NESTA_DB_PATH") else None
        log_file = Path(env["NESTA_LOG_FILE"]).expanduser() if env.get("NESTA_LOG_FILE") else None

        settings = cls(DB_PATH=db_path, LOG_LEVEL=env.get("NESTA_LOG_LEVEL", "WARNING").upper(), LOG_FILE=log_file)
        if data_dir is not None:
            settings.DATA_DIR = data_dir
            settings.DB_PATH = db_path or data_dir / "nesta.db"
        return settings

    @property
    def log_level(self) -> int:
        """Numeric log level, falling back to WARNING for unknown names."""
        level = logging.getLevelName(self.LOG_LEVEL)
        return level if isinstance(level, int) else logging.WARNING


def _first_env(environ: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


class ConfigResolver:
    """Layers the stored user configuration over environment fallbacks.

    Stored values always win; the environment only fills fields that are
    absent (or, for the Steam ID, empty). Whenever the effective
    configuration differs from the stored row it is written back, so the
    first call after exporting an env var "locks in" that value.
    """

    def __init__(self, db: Database, environ: Mapping[str, str] | None = None) -> None:
        """Initializes the resolver.

        Args:
            db: Local store holding the ``users`` row.
            environ: Environment lookup, defaults to ``os.environ``.
        """
        self.db = db
        self.environ: Mapping[str, str] = os.environ if environ is None else environ

    def get_config(self) -> UserConfig:
        """Returns the effective configuration, persisting it if it changed."""
        stored = self.db.get_user_config()

        env_steam_id = _first_env(self.environ, STEAM_ID_ENV_VARS) or ""
        env_api_key = _first_env(self.environ, API_KEY_ENV_VARS)
        env_openrouter = self.environ.get(OPENROUTER_ENV_VAR) or None

        if stored is None:
            effective = UserConfig(
                steam_id=env_steam_id,
                api_key=env_api_key,
                openrouter_api_key=env_openrouter,
            )
        else:
            effective = UserConfig(
                steam_id=stored.steam_id or env_steam_id,
                api_key=stored.api_key if stored.api_key is not None else env_api_key,
                openrouter_api_key=(
                    stored.openrouter_api_key if stored.openrouter_api_key is not None else env_openrouter
                ),
            )

        if stored is None or stored != effective:
            logger.debug("Persisting effective configuration (stored row %s)", "absent" if stored is None else "changed")
            self.db.save_user_config(effective)

        return effective

    def set_config(
        self,
        *,
        steam_id: str | None = None,
        api_key: str | None = None,
        openrouter_api_key: str | None = None,
    ) -> UserConfig:
        """Overlays a partial update on the effective configuration and stores it.

        ``None`` means "keep the current value"; there is no way to clear
        a field through this method.

        Returns:
            The configuration that was stored.
        """
        current = self.get_config()
        updates = {
            name: value
            for name, value in (
                ("steam_id", steam_id),
                ("api_key", api_key),
                ("openrouter_api_key", openrouter_api_key),
            )
            if value is not None
        }
        updated = replace(current, **updates)
        self.db.save_user_config(updated)
        logger.info("Configuration updated: %s", ", ".join(sorted(updates)) or "no changes")
        return updated
