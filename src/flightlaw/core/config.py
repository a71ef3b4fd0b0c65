"""Configuration loader for YAML files.

Aircraft definitions, logging settings and simulation options are YAML
documents. This module provides loading with nested access, defaults,
path resolution relative to the source file, and merging of overlays.

Typical usage example:
    from flightlaw.core.config import ConfigLoader

    config = ConfigLoader.load("aircraft/trainer.yaml")
    dt = config.get_float("aircraft.dt", default=1.0 / 120.0)
    systems_dir = config.get_path("aircraft.systems_path")
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""


class ConfigLoader:
    """Configuration loader for YAML files.

    Examples:
        >>> config = ConfigLoader.load("aircraft/trainer.yaml")
        >>> engines = config.get("aircraft.engines", default=0)
    """

    def __init__(self, data: dict[str, Any], base_dir: Path | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary.
            base_dir: Directory that relative paths are resolved against.
        """
        self._data = data
        self.base_dir = base_dir or Path.cwd()

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If the file cannot be read or is not a mapping.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data, base_dir=path.resolve().parent)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation).
            default: Default value if key not found.

        Returns:
            Configuration value or default.

        Examples:
            >>> config.get("aircraft.gear", default=[])
        """
        value = self._data

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get a numeric value, raising ConfigError when it is not a number."""
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Configuration key {key} is not a number: {value!r}") from e

    def get_int(self, key: str, default: int = 0) -> int:
        """Get an integer value, raising ConfigError when it is not one."""
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"Configuration key {key} is not an integer: {value!r}")
        return value

    def get_path(self, key: str, default: str | Path | None = None) -> Path | None:
        """Get a filesystem path, resolved against the configuration's directory.

        Args:
            key: Configuration key.
            default: Value used when the key is absent.

        Returns:
            Absolute path, or None when neither key nor default is set.
        """
        value = self.get(key, default)
        if value is None:
            return None

        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return path.resolve()

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation).
            value: Value to set.
        """
        keys = key.split(".")
        data = self._data

        for k in keys[:-1]:
            if k not in data:
                data[k] = {}
            data = data[k]

        data[keys[-1]] = value

    def get_section(self, key: str) -> dict[str, Any]:
        """Get an entire configuration section.

        Raises:
            ConfigError: If section not found or not a dict.
        """
        value = self.get(key)

        if value is None:
            raise ConfigError(f"Configuration section not found: {key}")

        if not isinstance(value, dict):
            raise ConfigError(f"Configuration key is not a section: {key}")

        return value

    def save(self, path: str | Path) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigError: If save fails.
        """
        path = Path(path)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)

            logger.info("Saved configuration to: %s", path)

        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to save configuration: {e}") from e

    def merge(self, other: "ConfigLoader") -> None:
        """Merge another configuration into this one.

        Note:
            Other config values override existing ones.
        """
        self._data = self._merge_dicts(self._data, other._data)

    def _merge_dicts(self, base: dict, override: dict) -> dict:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    def to_dict(self) -> dict[str, Any]:
        return self._data.copy()
