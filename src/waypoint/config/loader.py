"""Config loader for YAML configuration files."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from waypoint.config.models import WaypointConfig
from waypoint.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("waypoint.yaml", "waypoint.yml", "config.yaml")
LOG_LEVEL_ENV = "WAYPOINT_LOG_LEVEL"


class ConfigLoader:
    """Load WaypointConfig from YAML files."""

    @staticmethod
    def resolve_path(path: Path | str) -> Path:
        """Resolve a config directory to the file inside it.

        Raises:
            ConfigError: If no config file exists at ``path``
        """
        config_path = Path(path)
        if config_path.is_dir():
            for name in CONFIG_FILENAMES:
                candidate = config_path / name
                if candidate.exists():
                    return candidate
            raise ConfigError(f"No config file found in {config_path}")
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    @staticmethod
    def load(path: Path | str) -> WaypointConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to config directory or waypoint.yaml file

        Returns:
            Parsed WaypointConfig instance

        Raises:
            ConfigError: If the file is missing, is not valid YAML or fails validation
        """
        yaml_file = ConfigLoader.resolve_path(path)
        try:
            with open(yaml_file, encoding="utf-8") as f:
                data: Any = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e

        config = ConfigLoader.from_dict(data, source=str(yaml_file))
        logger.info(f"Loaded configuration from {yaml_file}")
        return config

    @staticmethod
    def load_or_default(path: Path | str | None) -> WaypointConfig:
        """Load ``path`` when given, otherwise the built-in defaults."""
        if path is None:
            return ConfigLoader.from_dict({}, source="defaults")
        return ConfigLoader.load(path)

    @staticmethod
    def from_dict(data: Any, source: str = "<dict>") -> WaypointConfig:
        """Validate raw data and apply environment overrides."""
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {source} must be a mapping")
        try:
            config = WaypointConfig.model_validate(data)
        except (ValidationError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {source}: {e}") from e
        return apply_env_overrides(config)


def apply_env_overrides(config: WaypointConfig) -> WaypointConfig:
    """Apply WAYPOINT_* environment variables on top of a loaded config."""
    level = os.environ.get(LOG_LEVEL_ENV)
    if level:
        config.settings.logging.level = level.upper()
    return config
