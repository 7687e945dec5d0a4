"""Configuration loader for the DNS-SD browser.

This module handles loading configuration from files and environment
variables, with validation performed by the schema dataclasses.
"""

import json
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .schema import (
    AppConfig,
    BrowserConfig,
    DiscoveryConfig,
    LoggingConfig,
    TransportConfig,
    WebConfig,
    create_default_config,
)

ENV_PREFIX = "DNSSD_BROWSER_"

SECTIONS = ("browser", "transport", "discovery", "logging", "web")


class ConfigLoader:
    """Configuration loader: defaults, then file, then environment."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_file: Path to configuration file (YAML or JSON)
        """
        self.config_file = config_file
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from file and environment variables.

        Returns:
            Loaded and validated browser configuration

        Raises:
            FileNotFoundError: If config file is specified but not found
            ValueError: If configuration is invalid
            yaml.YAMLError: If YAML parsing fails
            json.JSONDecodeError: If JSON parsing fails
        """
        config_dict = self._get_default_config_dict()

        if self.config_file:
            file_config = self._load_from_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)

        config_dict = self._apply_env_overrides(config_dict)

        self._config = self._dict_to_config(config_dict)

        return self._config

    def get_config(self) -> Optional[AppConfig]:
        """Get current configuration."""
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file.

        Args:
            file_path: Path to configuration file

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If file is not found
            ValueError: If file format is not supported
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        if path.suffix.lower() in [".yaml", ".yml"]:
            result = yaml.safe_load(content)
            return result if isinstance(result, dict) else {}
        elif path.suffix.lower() == ".json":
            json_result = json.loads(content)
            return json_result if isinstance(json_result, dict) else {}
        else:
            # Try YAML first, then JSON
            try:
                result = yaml.safe_load(content)
                return result if isinstance(result, dict) else {}
            except yaml.YAMLError:
                try:
                    json_result = json.loads(content)
                    return json_result if isinstance(json_result, dict) else {}
                except json.JSONDecodeError:
                    raise ValueError(f"Unsupported file format: {file_path}")

    def _get_default_config_dict(self) -> Dict[str, Any]:
        """Get default configuration as dictionary."""
        return asdict(create_default_config())

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Convert dictionary to configuration object.

        Raises:
            ValueError: If configuration is invalid
        """
        unknown = set(config_dict) - set(SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        try:
            return AppConfig(
                browser=BrowserConfig(**config_dict.get("browser", {})),
                transport=TransportConfig(**config_dict.get("transport", {})),
                discovery=DiscoveryConfig(**config_dict.get("discovery", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
                web=WebConfig(**config_dict.get("web", {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

    def _merge_configs(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Merge two configuration dictionaries.

        Nested sections are merged key by key; the ``txt`` pattern is
        replaced as a whole.
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and key != "txt"
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables use the format DNSSD_BROWSER_<SECTION>_<KEY>,
        for example DNSSD_BROWSER_BROWSER_TYPE=http. List values such as
        ``subtypes`` are comma-separated.
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            key_parts = env_key[len(ENV_PREFIX) :].lower().split("_")
            if len(key_parts) < 2:
                continue

            section = key_parts[0]
            config_key = "_".join(key_parts[1:])
            if section not in SECTIONS:
                continue

            if section == "browser" and config_key in ("type", "name", "protocol"):
                value: Any = env_value
            elif section == "browser" and config_key == "subtypes":
                value = [s.strip() for s in env_value.split(",") if s.strip()]
            else:
                value = self._convert_env_value(env_value)

            config_dict.setdefault(section, {})[config_key] = value

        return config_dict

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable value to appropriate Python type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value


def load_config_from_file(
    config_file: Optional[str] = None,
) -> Tuple[AppConfig, ConfigLoader]:
    """Convenience function to load configuration.

    Args:
        config_file: Path to configuration file

    Returns:
        Tuple of (loaded config, config loader instance)
    """
    loader = ConfigLoader(config_file)
    config = loader.load_config()
    return config, loader
