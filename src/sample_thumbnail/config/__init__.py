"""Configuration management for sample thumbnails."""

from .settings import (
    AppConfig,
    ConfigManager,
    RasterConfig,
    ThumbnailConfig,
    get_config,
    get_config_manager,
    reset_config_manager,
)

__all__ = [
    "AppConfig",
    "ConfigManager",
    "RasterConfig",
    "ThumbnailConfig",
    "get_config",
    "get_config_manager",
    "reset_config_manager",
]
