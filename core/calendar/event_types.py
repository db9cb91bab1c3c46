# SPDX-License-Identifier: Apache-2.0
"""
Event type registry.

Event types live in their own table keyed by name. Events reference them
by id; the registry maps between the two and creates missing types on
demand.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from config.constants import DEFAULT_EVENT_COLOR, TABLE_EVENT_TYPES

logger = logging.getLogger("lexcal.calendar.event_types")


@dataclass
class EventTypeRecord:
    id: str
    name: str
    color: str = DEFAULT_EVENT_COLOR

    @classmethod
    def from_db_row(cls, row) -> "EventTypeRecord":
        return cls(
            id=row["id"],
            name=row["name"],
            color=row.get("color") or DEFAULT_EVENT_COLOR,
        )


class EventTypeRegistry:
    """Cached view of the ``event_types`` table."""

    def __init__(self, storage):
        self.storage = storage
        self._by_id: Dict[str, EventTypeRecord] = {}
        self._loaded = False

    def load(self) -> List[EventTypeRecord]:
        """Reload every event type from storage."""
        rows = self.storage.select(TABLE_EVENT_TYPES)
        records = [EventTypeRecord.from_db_row(row) for row in rows]
        self._by_id = {record.id: record for record in records}
        self._loaded = True
        logger.debug(f"Loaded {len(records)} event type(s)")
        return records

    def clear(self):
        self._by_id = {}
        self._loaded = False

    def get(self, type_id: Optional[str]) -> Optional[EventTypeRecord]:
        if not type_id:
            return None
        return self._by_id.get(type_id)

    def find_by_name(self, name: str) -> Optional[EventTypeRecord]:
        """Case-insensitive lookup."""
        if not name:
            return None
        wanted = name.strip().lower()
        for record in self._by_id.values():
            if record.name.lower() == wanted:
                return record
        return None

    def resolve(self, name: str, color: Optional[str] = None) -> str:
        """
        Return the id of the named type, creating it if absent.

        Args:
            name: Type name, matched case-insensitively
            color: Colour for a newly created type

        Returns:
            Event type id

        Raises:
            RemoteError: If the lookup or insert fails
        """
        if not self._loaded:
            self.load()

        record = self.find_by_name(name)
        if record is not None:
            return record.id

        rows = self.storage.insert(
            TABLE_EVENT_TYPES,
            [{"name": name, "color": color or DEFAULT_EVENT_COLOR}],
        )
        record = EventTypeRecord.from_db_row(rows[0])
        self._by_id[record.id] = record
        logger.info(f"Created event type '{name}': {record.id}")
        return record.id
