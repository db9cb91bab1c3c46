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
SQLite storage backend.

Runs against the local database managed by ``DatabaseConnection``. Table
names are checked against the known tables and column names against a
strict identifier pattern before they are interpolated into SQL; values
are always bound as parameters.
"""

import json
import logging
import re
import sqlite3
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from core.calendar.exceptions import RemoteError
from data.database.connection import DatabaseConnection
from data.storage.base import Row, StorageClient

logger = logging.getLogger("lexcal.storage.sqlite")

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _to_db_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class SqliteStorage(StorageClient):
    """StorageClient over a local SQLite database."""

    def __init__(self, db_connection: DatabaseConnection, initialize: bool = True):
        """
        Initialize the SQLite backend.

        Args:
            db_connection: Database connection manager
            initialize: Create the schema if needed
        """
        self.db = db_connection
        if initialize:
            self.db.initialize_schema()
        logger.info(f"SQLite storage ready: {self.db.db_path}")

    def _column(self, name: str, table: str, operation: str) -> str:
        if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
            raise RemoteError(
                f"Invalid column name: {name!r}", table=table, operation=operation
            )
        return name

    def _where(
        self, table: str, filters: Optional[Mapping[str, Any]], operation: str
    ) -> Tuple[str, List[Any]]:
        if not filters:
            return "", []
        clauses = []
        params = []
        for key, value in filters.items():
            column = self._column(key, table, operation)
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(_to_db_value(value))
        return " WHERE " + " AND ".join(clauses), params

    def _fetch(self, query: str, params: Sequence[Any]) -> List[Row]:
        rows = self.db.execute(query, tuple(params))
        return [dict(row) for row in rows]

    def _fetch_by_ids(self, table: str, ids: List[str]) -> List[Row]:
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self._fetch(f"SELECT * FROM {table} WHERE id IN ({placeholders})", ids)
        # Keep caller order
        by_id = {row["id"]: row for row in rows}
        return [by_id[row_id] for row_id in ids if row_id in by_id]

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        self._check_table(table, "select")
        where, params = self._where(table, filters, "select")
        query = f"SELECT * FROM {table}{where}"
        if order_by:
            direction = "DESC" if descending else "ASC"
            query += f" ORDER BY {self._column(order_by, table, 'select')} {direction}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))

        try:
            return self._fetch(query, params)
        except sqlite3.Error as e:
            logger.error(f"Select from {table} failed: {e}")
            raise RemoteError(str(e), table=table, operation="select") from e

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        self._check_table(table, "insert")
        if not rows:
            return []

        ids = []
        try:
            with self.db.get_cursor(commit=True) as cursor:
                for row in rows:
                    values: Dict[str, Any] = dict(row)
                    if not values.get("id"):
                        values["id"] = str(uuid.uuid4())
                    ids.append(values["id"])

                    columns = [self._column(key, table, "insert") for key in values]
                    placeholders = ", ".join("?" for _ in columns)
                    cursor.execute(
                        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                        tuple(_to_db_value(v) for v in values.values()),
                    )
            stored = self._fetch_by_ids(table, ids)
        except sqlite3.Error as e:
            logger.error(f"Insert into {table} failed: {e}")
            raise RemoteError(str(e), table=table, operation="insert") from e

        logger.debug(f"Inserted {len(stored)} row(s) into {table}")
        return stored

    def update(
        self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> List[Row]:
        self._check_table(table, "update")
        self._check_filters(table, filters, "update")
        if not values:
            return self.select(table, filters)

        where, where_params = self._where(table, filters, "update")
        assignments = []
        params = []
        for key, value in values.items():
            assignments.append(f"{self._column(key, table, 'update')} = ?")
            params.append(_to_db_value(value))

        try:
            matched = self._fetch(f"SELECT id FROM {table}{where}", where_params)
            ids = [row["id"] for row in matched]
            self.db.execute_write(
                f"UPDATE {table} SET {', '.join(assignments)}{where}",
                tuple(params + where_params),
            )
            stored = self._fetch_by_ids(table, ids)
        except sqlite3.Error as e:
            logger.error(f"Update of {table} failed: {e}")
            raise RemoteError(str(e), table=table, operation="update") from e

        logger.debug(f"Updated {len(stored)} row(s) in {table}")
        return stored

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        self._check_table(table, "delete")
        self._check_filters(table, filters, "delete")
        where, params = self._where(table, filters, "delete")

        try:
            count = self.db.execute_write(f"DELETE FROM {table}{where}", tuple(params))
        except sqlite3.Error as e:
            logger.error(f"Delete from {table} failed: {e}")
            raise RemoteError(str(e), table=table, operation="delete") from e

        logger.debug(f"Deleted {count} row(s) from {table}")
        return count

    def close(self):
        self.db.close()
