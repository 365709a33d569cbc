"""Configuration package for the grade store."""

from gradestore.config.app_config import (
    AppConfig,
    DatabaseConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "clear_config_cache",
    "load_app_config",
]
