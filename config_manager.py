"""
Configuration management for the Pixel Event Bridge.
Handles loading, validating, and providing access to application settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class PixelConfig:
    """Pixel settings consumed by the server event factory."""
    pixel_id: str
    use_pii: bool


@dataclass
class AppConfig:
    """Application configuration settings."""
    host: str
    port: int
    debug: bool


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_flag(value: Any) -> bool:
    """Read a boolean setting that may have been written as a string."""
    if isinstance(value, str):
        return _env_flag(value)
    return bool(value)


class ConfigManager:
    """Manages application configuration loading and access."""

    def __init__(self, config_file: str = "pixel_bridge_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except (json.JSONDecodeError, FileNotFoundError):
                # Keep default config if file is invalid or not found
                pass

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "pixel": {
                "pixel_id": "",
                "use_pii": False
            },
            "app": {
                "host": "0.0.0.0",
                "port": 22582,
                "debug": False
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        if os.getenv("PIXEL_ID"):
            self._config["pixel"]["pixel_id"] = os.getenv("PIXEL_ID")

        if os.getenv("PIXEL_USE_PII"):
            self._config["pixel"]["use_pii"] = _env_flag(os.getenv("PIXEL_USE_PII"))

        if os.getenv("APP_HOST"):
            self._config["app"]["host"] = os.getenv("APP_HOST")

        if os.getenv("APP_PORT"):
            self._config["app"]["port"] = int(os.getenv("APP_PORT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

    def get_pixel_config(self) -> PixelConfig:
        """Get pixel configuration."""
        pixel_config = self._config["pixel"]
        return PixelConfig(
            pixel_id=str(pixel_config["pixel_id"]),
            use_pii=_parse_flag(pixel_config["use_pii"])
        )

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            host=app_config["host"],
            port=app_config["port"],
            debug=app_config["debug"]
        )

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_pixel_config() -> PixelConfig:
    """Get pixel configuration."""
    return config_manager.get_pixel_config()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
