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
Base interface for table storage backends.

The calendar store talks to storage only through this interface, so the
local SQLite database and the hosted REST API are interchangeable.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

from config.constants import ALL_TABLES
from core.calendar.exceptions import RemoteError

Row = Dict[str, Any]


class StorageClient(ABC):
    """
    Abstract table storage.

    Filters are equality matches ANDed together. Every method raises
    ``RemoteError`` on failure.
    """

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """
        Read rows from a table.

        Args:
            table: Table name
            filters: Column/value equality filters
            order_by: Column to sort by
            descending: Sort direction
            limit: Maximum number of rows

        Returns:
            List of row dicts
        """
        pass

    @abstractmethod
    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        """
        Insert rows and return them as stored.

        Rows without an ``id`` get a generated UUID4.
        """
        pass

    @abstractmethod
    def update(
        self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> List[Row]:
        """Update matching rows and return them as stored."""
        pass

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete matching rows and return how many were removed."""
        pass

    def close(self):
        """Release backend resources."""
        pass

    def _check_table(self, table: str, operation: str):
        if table not in ALL_TABLES:
            raise RemoteError(f"Unknown table: {table}", table=table, operation=operation)

    def _check_filters(self, table: str, filters, operation: str):
        # Unfiltered update/delete would touch the whole table
        if not filters:
            raise RemoteError(
                f"Refusing {operation} on {table} without filters",
                table=table,
                operation=operation,
            )
