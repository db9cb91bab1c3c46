# SPDX-License-Identifier: Apache-2.0
#
# Copyright (c) 2024-2025 lexcal Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Configuration management for lexcal.

Handles loading, validation, and saving of application configuration.
"""

import copy
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from config.constants import (
    MAX_REFRESH_INTERVAL_MINUTES,
    MIN_REFRESH_INTERVAL_MINUTES,
)


APP_DIR_NAME = ".lexcal"

VALID_STORAGE_BACKENDS = ("sqlite", "rest")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_app_dir() -> Path:
    """Return the root directory for lexcal user data."""
    return Path.home() / APP_DIR_NAME


logger = logging.getLogger("lexcal.config")


@lru_cache(maxsize=1)
def get_default_config_version() -> str:
    """Return the application version defined in the default config."""
    default_config_path = Path(__file__).parent / "default_config.json"

    try:
        with open(default_config_path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except FileNotFoundError:
        logger.error("Default configuration file not found: %s", default_config_path)
        return "0.0.0"
    except json.JSONDecodeError as exc:
        logger.error(
            "Invalid JSON in default configuration file %s: %s",
            default_config_path,
            exc
        )
        return "0.0.0"

    version = data.get("version")
    if isinstance(version, str) and version.strip():
        return version.strip()

    logger.warning(
        "Default configuration missing valid 'version'; falling back to 0.0.0"
    )
    return "0.0.0"


class ConfigManager:
    """Manages application configuration with validation and persistence."""

    def __init__(self):
        """Initialize the configuration manager."""
        self.default_config_path = (
            Path(__file__).parent / "default_config.json"
        )
        self.user_config_dir = get_app_dir()
        self.user_config_path = self.user_config_dir / "app_config.json"
        self._config: Dict[str, Any] = {}
        self._default_config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from user config or default config."""
        try:
            logger.info(
                f"Loading default configuration from "
                f"{self.default_config_path}"
            )
            with open(self.default_config_path, 'r', encoding='utf-8') as f:
                self._default_config = json.load(f)

            user_config: Dict[str, Any] = {}
            if self.user_config_path.exists():
                logger.info(
                    f"Loading user configuration from "
                    f"{self.user_config_path}"
                )
                with open(self.user_config_path, 'r', encoding='utf-8') as f:
                    user_config = json.load(f)

            self._config = self._deep_merge(self._default_config, user_config)

            self._validate_config()
            logger.info("Configuration loaded and validated successfully")

        except FileNotFoundError as e:
            logger.error(f"Configuration file not found: {e}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file: {e}")
            raise
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            raise

    def _validate_config(self) -> None:
        """Validate required configuration fields and types."""
        required_fields = {
            "version": str,
            "storage": dict,
            "calendar": dict,
            "logging": dict,
        }

        for field, expected_type in required_fields.items():
            if field not in self._config:
                raise ValueError(
                    f"Missing required configuration field: {field}"
                )
            if not isinstance(self._config[field], expected_type):
                raise TypeError(
                    f"Configuration field '{field}' must be of type "
                    f"{expected_type.__name__}, got "
                    f"{type(self._config[field]).__name__}"
                )

        self._validate_storage_config()
        self._validate_calendar_config()
        self._validate_logging_config()

    def _validate_storage_config(self) -> None:
        """Validate storage backend configuration."""
        storage_config = self._config["storage"]
        backend = storage_config.get("backend")
        if backend not in VALID_STORAGE_BACKENDS:
            raise ValueError(
                f"storage.backend must be one of {list(VALID_STORAGE_BACKENDS)}"
            )

        if backend == "sqlite":
            sqlite_config = storage_config.get("sqlite")
            if not isinstance(sqlite_config, dict) or not sqlite_config.get("path"):
                raise ValueError("Missing required field: storage.sqlite.path")

        if backend == "rest":
            rest_config = storage_config.get("rest")
            if not isinstance(rest_config, dict):
                raise TypeError("storage.rest must be a dictionary")
            if not rest_config.get("url"):
                raise ValueError("Missing required field: storage.rest.url")
            timeout = rest_config.get("timeout", 30.0)
            if not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError("storage.rest.timeout must be a positive number")

    def _validate_calendar_config(self) -> None:
        """Validate calendar configuration."""
        calendar_config = self._config["calendar"]

        if "auto_refresh" in calendar_config:
            if not isinstance(calendar_config["auto_refresh"], bool):
                raise TypeError("calendar.auto_refresh must be a boolean")

        interval = calendar_config.get("refresh_interval_minutes")
        if interval is None:
            raise ValueError(
                "Missing required field: calendar.refresh_interval_minutes"
            )
        if (not isinstance(interval, int) or isinstance(interval, bool) or
                not (MIN_REFRESH_INTERVAL_MINUTES <= interval
                     <= MAX_REFRESH_INTERVAL_MINUTES)):
            raise ValueError(
                "calendar.refresh_interval_minutes must be an integer between "
                f"{MIN_REFRESH_INTERVAL_MINUTES} and "
                f"{MAX_REFRESH_INTERVAL_MINUTES}"
            )

    def _validate_logging_config(self) -> None:
        """Validate logging configuration."""
        level = self._config["logging"].get("level", "INFO")
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {list(VALID_LOG_LEVELS)}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.

        Supports nested keys using dot notation (e.g., "storage.backend").

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key is not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value by key.

        Supports nested keys using dot notation (e.g., "storage.backend").

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self) -> None:
        """Save the current configuration to the user config file."""
        try:
            self.user_config_dir.mkdir(parents=True, exist_ok=True)

            self._validate_config()

            with open(self.user_config_path, 'w', encoding='utf-8') as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)

            # The file may hold a REST api key
            try:
                os.chmod(self.user_config_path, 0o600)
                logger.debug("Set secure permissions for config file")
            except OSError as e:
                logger.warning(f"Could not set file permissions: {e}")

            logger.info(f"Configuration saved to {self.user_config_path}")

        except Exception as e:
            logger.error(f"Error saving configuration: {e}")
            raise

    def get_all(self) -> Dict[str, Any]:
        """
        Get the entire configuration dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self._clone_value(self._config)

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load_config()

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two dictionaries without mutating inputs."""
        result: Dict[str, Any] = {}

        for key, base_value in base.items():
            if key in override:
                override_value = override[key]
                if isinstance(base_value, dict) and isinstance(override_value, dict):
                    result[key] = cls._deep_merge(base_value, override_value)
                else:
                    result[key] = cls._clone_value(override_value)
            else:
                result[key] = cls._clone_value(base_value)

        for key, override_value in override.items():
            if key not in base:
                result[key] = cls._clone_value(override_value)

        return result

    @classmethod
    def _clone_value(cls, value: Any) -> Any:
        """Return a deep copy of supported container types."""
        if isinstance(value, dict):
            return {k: cls._clone_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [cls._clone_value(v) for v in value]
        return copy.deepcopy(value)
