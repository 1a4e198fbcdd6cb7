"""Configuration management for maptrack.

Handles loading configuration from TOML files, environment variables,
and command-line options with proper precedence.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from maptrack.controller import DEFAULT_PAN_DURATION, DEFAULT_RECENTER_ZOOM, DEFAULT_ZOOM
from maptrack.models.state import DEFAULT_STORAGE_KEY
from maptrack.views.map import DEFAULT_TILE_URL

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "maptrack" / "config.toml"
DEFAULT_DATA_DIR = Path("./data")


@dataclass
class DataConfig:
    """Data storage configuration."""

    directory: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)


@dataclass
class StorageConfig:
    """Persisted state configuration."""

    key: str = DEFAULT_STORAGE_KEY


@dataclass
class MapConfig:
    """Map view configuration."""

    zoom: int = DEFAULT_ZOOM
    recenter_zoom: int = DEFAULT_RECENTER_ZOOM
    pan_duration: float = DEFAULT_PAN_DURATION
    tile_url: str = DEFAULT_TILE_URL


@dataclass
class PositionConfig:
    """Position source configuration."""

    latitude: float | None = None
    longitude: float | None = None
    geolocation_url: str = ""
    timeout: float = 10.0


@dataclass
class Config:
    """Main configuration container."""

    data: DataConfig = field(default_factory=DataConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    map: MapConfig = field(default_factory=MapConfig)
    position: PositionConfig = field(default_factory=PositionConfig)
    config_path: Path | None = None


def _get_env_value(key: str, default: str = "") -> str:
    """Get environment variable value."""
    return os.environ.get(key, default)


def _get_env_float(key: str) -> float | None:
    """Get environment variable as float, or None if unset."""
    value = os.environ.get(key, "")
    if not value:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"{key} must be a number, got {value!r}") from e


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_path: Path to configuration file. If None, uses default location.

    Returns:
        Populated Config object.
    """
    config = Config()

    if config_path is None:
        env_config = _get_env_value("MAPTRACK_CONFIG")
        config_path = Path(env_config) if env_config else DEFAULT_CONFIG_PATH

    config.config_path = config_path

    if config_path.exists():
        config = _load_from_file(config_path, config)

    config = _apply_env_overrides(config)

    return config


def _load_from_file(path: Path, config: Config) -> Config:
    """Load configuration from TOML file.

    Args:
        path: Path to TOML file.
        config: Existing config to update.

    Returns:
        Updated Config object.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    if "data" in data:
        data_section = data["data"]
        if "directory" in data_section:
            config.data.directory = Path(data_section["directory"])

    if "storage" in data:
        config.storage.key = data["storage"].get("key", config.storage.key)

    if "map" in data:
        map_section = data["map"]
        config.map.zoom = int(map_section.get("zoom", config.map.zoom))
        config.map.recenter_zoom = int(map_section.get("recenter_zoom", config.map.recenter_zoom))
        config.map.pan_duration = float(map_section.get("pan_duration", config.map.pan_duration))
        config.map.tile_url = map_section.get("tile_url", config.map.tile_url)

    if "position" in data:
        position = data["position"]
        if "latitude" in position:
            config.position.latitude = float(position["latitude"])
        if "longitude" in position:
            config.position.longitude = float(position["longitude"])
        config.position.geolocation_url = position.get(
            "geolocation_url", config.position.geolocation_url
        )
        config.position.timeout = float(position.get("timeout", config.position.timeout))

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to configuration.

    Args:
        config: Config to update.

    Returns:
        Updated Config object.
    """
    if data_dir := _get_env_value("MAPTRACK_DATA_DIR"):
        config.data.directory = Path(data_dir)

    if storage_key := _get_env_value("MAPTRACK_STORAGE_KEY"):
        config.storage.key = storage_key

    if (latitude := _get_env_float("MAPTRACK_LATITUDE")) is not None:
        config.position.latitude = latitude
    if (longitude := _get_env_float("MAPTRACK_LONGITUDE")) is not None:
        config.position.longitude = longitude

    if geolocation_url := _get_env_value("MAPTRACK_GEOLOCATION_URL"):
        config.position.geolocation_url = geolocation_url

    return config


def ensure_data_dir(config: Config) -> Path:
    """Ensure data directory exists and return its path.

    Args:
        config: Configuration with data directory setting.

    Returns:
        Path to data directory.
    """
    data_dir = config.data.directory.resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir
