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
Application initialization utilities.

Builds the storage backend, calendar store and refresh scheduler from a
loaded ``ConfigManager``.
"""

import logging

from config.constants import DEFAULT_REFRESH_INTERVAL_MINUTES, DEFAULT_REST_TIMEOUT_SECONDS

logger = logging.getLogger("lexcal.app_initializer")


def create_storage(config):
    """
    Create the storage backend selected by ``storage.backend``.

    Args:
        config: ConfigManager instance

    Returns:
        StorageClient implementation

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = config.get("storage.backend", "sqlite")

    if backend == "sqlite":
        from data.database.connection import DatabaseConnection
        from data.storage.sqlite_backend import SqliteStorage

        db = DatabaseConnection(config.get("storage.sqlite.path"))
        logger.info("Using SQLite storage backend")
        return SqliteStorage(db)

    if backend == "rest":
        from data.storage.rest_backend import RestStorage

        logger.info("Using REST storage backend")
        return RestStorage(
            base_url=config.get("storage.rest.url"),
            api_key=config.get("storage.rest.api_key"),
            timeout=config.get("storage.rest.timeout", DEFAULT_REST_TIMEOUT_SECONDS),
        )

    raise ValueError(f"Unknown storage backend: {backend}")


def create_calendar_store(config, auth, storage=None):
    """Create the calendar store, building storage from config if not given."""
    from core.calendar.store import CalendarStore

    if storage is None:
        storage = create_storage(config)
    return CalendarStore(storage, auth)


def create_refresh_scheduler(store, config):
    """
    Create the refresh scheduler, or None when auto refresh is off.
    """
    if not config.get("calendar.auto_refresh", True):
        logger.info("Automatic calendar refresh disabled")
        return None

    from core.calendar.refresh_scheduler import RefreshScheduler

    interval = config.get("calendar.refresh_interval_minutes", DEFAULT_REFRESH_INTERVAL_MINUTES)
    return RefreshScheduler(store, interval)
