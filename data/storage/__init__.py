# SPDX-License-Identifier: Apache-2.0
"""
Table storage backends for lexcal.
"""

from data.storage.base import StorageClient
from data.storage.rest_backend import RestStorage
from data.storage.sqlite_backend import SqliteStorage

__all__ = ["StorageClient", "SqliteStorage", "RestStorage"]
