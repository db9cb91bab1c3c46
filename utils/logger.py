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
Logging setup.

Centralised configuration with a rotating log file and console output.
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from config.app_config import get_app_dir

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

ROOT_LOGGER_NAME = "lexcal"


class SensitiveDataFilter(logging.Filter):
    """
    Masks credentials before a record reaches any handler.

    The REST storage backend is configured with an api key that must never
    end up in a log file.
    """

    SENSITIVE_KEYWORDS = [
        "api_key",
        "api-key",
        "apikey",
        "token",
        "access_token",
        "password",
        "secret",
        "authorization",
        "bearer",
    ]

    _PATTERNS = [
        (r"(api[_-]?key\s*[=:]\s*)[^\s,\)]+", r"\1***"),
        (r"(token\s*[=:]\s*)[^\s,\)]+", r"\1***"),
        (r"(password\s*[=:]\s*)[^\s,\)]+", r"\1***"),
        (r"(secret\s*[=:]\s*)[^\s,\)]+", r"\1***"),
        (r"(bearer\s+)[^\s,\)]+", r"\1***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        lowered = message.lower()

        for keyword in self.SENSITIVE_KEYWORDS:
            if keyword in lowered:
                # Freeze the formatted message so args cannot reintroduce secrets
                record.msg = self._mask_sensitive_data(message)
                record.args = None
                break

        return True

    def _mask_sensitive_data(self, message: str) -> str:
        masked = message
        for pattern, replacement in self._PATTERNS:
            masked = re.sub(pattern, replacement, masked, flags=re.IGNORECASE)
        return masked


def setup_logging(
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    console_output: bool = True,
) -> logging.Logger:
    """
    Configure the application logging system.

    Args:
        log_dir: Log directory, defaults to ~/.lexcal/logs
        level: Log level; when omitted it follows LEXCAL_ENV
               (development: DEBUG, anything else: INFO)
        console_output: Whether to also log to stdout

    Returns:
        The configured application root logger
    """
    if log_dir is None:
        log_dir = get_app_dir() / "logs"
    else:
        log_dir = Path(log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)

    if level is None:
        env = os.environ.get("LEXCAL_ENV", "production").lower()
        level = "DEBUG" if env == "development" else "INFO"

    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # handlers decide what gets through

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    sensitive_filter = SensitiveDataFilter()

    from config.constants import LOG_FILE_BACKUP_COUNT, LOG_FILE_MAX_BYTES

    log_file = log_dir / "lexcal.log"
    file_handler = RotatingFileHandler(
        log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(log_level)
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(sensitive_filter)
    logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(max(log_level, logging.INFO))
        console_formatter = logging.Formatter("%(levelname)s: %(message)s")
        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(sensitive_filter)
        logger.addHandler(console_handler)

    logger.info("Logging initialized")
    logger.debug(f"Log file: {log_file}")
    logger.debug(f"Log level: {level}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the application namespace.

    Example:
        logger = get_logger(__name__)
        logger.info("This is an info message")
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def get_log_file_path() -> Path:
    """Return the active log file path, or the default location."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            return Path(handler.baseFilename)

    return get_app_dir() / "logs" / "lexcal.log"
