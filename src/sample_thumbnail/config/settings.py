"""Configuration management for sample thumbnails.

Uses attrs with validators for type-safe, validated configuration.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import attrs
from attrs import define, field


def positive_int(instance, attribute, value):
    """Validator: ensure value is a positive integer."""
    if value <= 0:
        raise ValueError(f"{attribute.name} must be positive, got {value}")


def _validate_widths(instance, attribute, value):
    """Validator: raster widths must be positive and strictly descending."""
    if any(w <= 0 for w in value):
        raise ValueError(f"{attribute.name} must all be positive, got {list(value)}")
    if any(a <= b for a, b in zip(value, value[1:])):
        raise ValueError(f"{attribute.name} must be strictly descending, got {list(value)}")


def _to_width_tuple(value) -> tuple[int, ...]:
    return tuple(int(w) for w in value)


@define
class ThumbnailConfig:
    """Pyramid construction parameters."""

    # Smallest level kept in a pyramid
    min_thumbnail_size: int = field(default=1, validator=[attrs.validators.instance_of(int), positive_int])

    # Lower bound of the level-to-level divisor (actual divisor grows with log2 of sample length)
    size_divisor_floor: int = field(default=32, validator=[attrs.validators.instance_of(int), positive_int])

    # Finest level holds one unit per this many frames
    first_level_ratio: int = field(default=4, validator=[attrs.validators.instance_of(int), positive_int])


@define
class RasterConfig:
    """Prerendered raster fast path parameters."""

    widths: tuple[int, ...] = field(
        default=(1024, 512, 256, 128, 64, 32, 16),
        converter=_to_width_tuple,
        validator=_validate_widths,
    )
    height: int = field(default=128, validator=[attrs.validators.instance_of(int), positive_int])

    # Requests wider than this always use the window renderer
    width_limit: int = field(default=1024, validator=[attrs.validators.instance_of(int), positive_int])

    waveform_color: str = field(default="#c0c0c0", validator=attrs.validators.instance_of(str))
    rms_lighter_factor: int = field(default=123, validator=[attrs.validators.instance_of(int), positive_int])


@define
class AppConfig:
    """Main configuration combining all sub-configs."""

    thumbnail: ThumbnailConfig = field(factory=ThumbnailConfig)
    raster: RasterConfig = field(factory=RasterConfig)

    @classmethod
    def default(cls) -> AppConfig:
        """Create default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        """Create configuration from dictionary."""
        return cls(
            thumbnail=ThumbnailConfig(**data.get("thumbnail", {})),
            raster=RasterConfig(**data.get("raster", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        data = attrs.asdict(self)
        data["raster"]["widths"] = list(data["raster"]["widths"])
        return data

    def save(self, filepath: str | Path) -> None:
        """Save configuration to JSON file."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str | Path) -> AppConfig:
        """Load configuration from JSON file."""
        with open(filepath) as f:
            data = json.load(f)
        return cls.from_dict(data)


class ConfigManager:
    """Manages configuration with environment variable overrides."""

    ENV_PREFIX = "ST_"

    def __init__(self, config_dir: str | Path | None = None):
        """Initialize config manager.

        Args:
            config_dir: Directory for config files. Defaults to $ST_CONFIG_DIR,
                then ~/.sample_thumbnail/
        """
        if config_dir is None:
            config_dir = os.environ.get(f"{self.ENV_PREFIX}CONFIG_DIR") or Path.home() / ".sample_thumbnail"
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.user_config_path = self.config_dir / "user_config.json"
        self.default_config_path = self.config_dir / "default_config.json"

        self._config: AppConfig | None = None

    def get_config(self) -> AppConfig:
        """Get current configuration with environment variable overrides."""
        if self._config is None:
            self._config = self._load_config()
            self._apply_env_overrides()
        return self._config

    def _load_config(self) -> AppConfig:
        """Load configuration from user or default file."""
        if self.user_config_path.exists():
            return AppConfig.load(self.user_config_path)

        if self.default_config_path.exists():
            return AppConfig.load(self.default_config_path)

        config = AppConfig.default()
        config.save(self.default_config_path)
        return config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to config.

        Environment variables like ST_RASTER_HEIGHT=64 override config.raster.height
        """
        if self._config is None:
            return

        for attr in ["height", "width_limit"]:
            env_var = f"{self.ENV_PREFIX}RASTER_{attr.upper()}"
            if env_var in os.environ:
                setattr(self._config.raster, attr, int(os.environ[env_var]))

        for attr in ["size_divisor_floor", "first_level_ratio"]:
            env_var = f"{self.ENV_PREFIX}{attr.upper()}"
            if env_var in os.environ:
                setattr(self._config.thumbnail, attr, int(os.environ[env_var]))

    def save_user_config(self) -> None:
        """Save current configuration as user config."""
        if self._config is not None:
            self._config.save(self.user_config_path)

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self._config = AppConfig.default()
        if self.user_config_path.exists():
            self.user_config_path.unlink()


# Global singleton instance
_config_manager: ConfigManager | None = None


def get_config() -> AppConfig:
    """Get global configuration singleton.

    Returns:
        AppConfig instance with current settings.

    Example:
        >>> from sample_thumbnail.config.settings import get_config
        >>> config = get_config()
        >>> print(config.raster.width_limit)
        1024
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.get_config()


def get_config_manager() -> ConfigManager:
    """Get global config manager singleton."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config_manager() -> None:
    """Drop the global config manager so the next access reloads from disk."""
    global _config_manager
    _config_manager = None
