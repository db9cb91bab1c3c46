# SPDX-License-Identifier: Apache-2.0
"""
Shared pytest fixtures for lexcal tests.
"""

import uuid
from datetime import datetime

import pytest

from core.calendar.auth import AuthContext
from core.calendar.exceptions import RemoteError
from core.calendar.models import Calendar, Event

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"


class MemoryStorage:
    """In-memory StorageClient double that records every call."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = set()

    def fail_on(self, table, operation):
        """Make (table, operation) raise RemoteError."""
        self.failures.add((table, operation))

    def _maybe_fail(self, table, operation):
        self.calls.append((operation, table))
        if (table, operation) in self.failures or ("*", operation) in self.failures:
            raise RemoteError(f"{operation} on {table} failed", table=table, operation=operation)

    def _matches(self, row, filters):
        return all(row.get(k) == v for k, v in (filters or {}).items())

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        self._maybe_fail(table, "select")
        result = [dict(r) for r in self.rows(table) if self._matches(r, filters)]
        if order_by:
            result.sort(
                key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending
            )
        if limit is not None:
            result = result[:limit]
        return result

    def insert(self, table, rows):
        self._maybe_fail(table, "insert")
        stored = []
        for row in rows:
            values = dict(row)
            values.setdefault("id", None)
            if not values["id"]:
                values["id"] = str(uuid.uuid4())
            self.rows(table).append(values)
            stored.append(dict(values))
        return stored

    def update(self, table, values, filters):
        self._maybe_fail(table, "update")
        updated = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    def delete(self, table, filters):
        self._maybe_fail(table, "delete")
        before = len(self.rows(table))
        self.tables[table] = [r for r in self.rows(table) if not self._matches(r, filters)]
        return before - len(self.tables[table])

    def operations(self, table=None):
        return [op for op, t in self.calls if table is None or t == table]

    def close(self):
        pass


@pytest.fixture
def memory_storage():
    """Create an empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def auth():
    """Signed-in auth context."""
    return AuthContext(user_id=USER_ID)


@pytest.fixture
def my_calendar():
    return Calendar(name="My Calendar", color="#3B82F6", owner_id=USER_ID)


@pytest.fixture
def sample_event(my_calendar):
    return Event(
        title="Client call",
        start=datetime(2024, 1, 10, 9, 0),
        end=datetime(2024, 1, 10, 10, 0),
        calendar=my_calendar.id,
    )
