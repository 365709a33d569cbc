"""Application configuration loader.

Loads configuration from config/gradestore.yaml, falling back to
built-in defaults when the file is absent. GRADESTORE_DB overrides the
database location.

Usage:
    from gradestore.config.app_config import load_app_config

    config = load_app_config()
    location = config.database.location
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/gradestore.yaml")

# Environment variable overriding database.location
DB_ENV_VAR = "GRADESTORE_DB"


@dataclass
class DatabaseConfig:
    """Where the grade database lives."""

    location: str = "db/gradestore.db"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = "warning"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"location": "db/gradestore.db"},
        "logging": {"level": "warning"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()
    database_data = data.get("database") or {}
    logging_data = data.get("logging") or {}

    location = os.environ.get(DB_ENV_VAR) or database_data.get(
        "location", defaults["database"]["location"]
    )

    return AppConfig(
        database=DatabaseConfig(location=str(location)),
        log_level=str(logging_data.get("level", defaults["logging"]["level"])).lower(),
    )


def load_app_config(force_reload: bool = False, config_file: Path | None = None) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternative YAML file (default: config/gradestore.yaml)

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    path = config_file or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.debug("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
