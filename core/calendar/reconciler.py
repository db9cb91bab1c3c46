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
Satellite table reconciliation.

Attendees, the reminder and linked documents are stored in their own
tables, one row per item. Writes replace the whole set for an event:
delete every existing row, then insert the new ones. Write failures are
logged and swallowed so that the primary event write stands on its own.
"""

import logging
from typing import List

from config.constants import (
    REMINDER_TYPE_NOTIFICATION,
    TABLE_EVENT_ATTENDEES,
    TABLE_EVENT_DOCUMENTS,
    TABLE_EVENT_REMINDERS,
)
from core.calendar.constants import Reminder, SatelliteKind
from core.calendar.exceptions import RemoteError, SatelliteReconciliationError
from core.calendar.models import Event, EventDocument

logger = logging.getLogger("lexcal.calendar.reconciler")


def attendee_to_row(event_id: str, attendee: str) -> dict:
    """Values containing '@' are stored as email, everything else as name."""
    if "@" in attendee:
        return {"event_id": event_id, "name": None, "email": attendee}
    return {"event_id": event_id, "name": attendee, "email": None}


def attendee_from_row(row) -> str:
    return row.get("email") or row.get("name") or ""


class SubEntityReconciler:
    """Reads and replaces an event's attendees, reminder and documents."""

    def __init__(self, storage):
        self.storage = storage

    def _report(self, event_id: str, kind: str, cause: Exception) -> SatelliteReconciliationError:
        error = SatelliteReconciliationError(event_id, kind, cause)
        logger.error(str(error))
        return error

    def _replace(self, table: str, event_id: str, rows: List[dict]):
        self.storage.delete(table, {"event_id": event_id})
        if rows:
            self.storage.insert(table, rows)

    def reconcile_attendees(self, event_id: str, attendees: List[str]) -> bool:
        """
        Replace the attendee rows of an event.

        Returns:
            True on success, False if the write failed (already logged)
        """
        rows = [attendee_to_row(event_id, a) for a in attendees if a and a.strip()]
        try:
            self._replace(TABLE_EVENT_ATTENDEES, event_id, rows)
        except RemoteError as e:
            self._report(event_id, SatelliteKind.ATTENDEES, e)
            return False
        logger.debug(f"Reconciled {len(rows)} attendee(s) for event {event_id}")
        return True

    def reconcile_reminder(self, event_id: str, reminder: str) -> bool:
        """Replace the reminder row; ``none`` only deletes."""
        try:
            minutes = Reminder.to_minutes(reminder)
        except ValueError as e:
            self._report(event_id, SatelliteKind.REMINDER, e)
            return False

        rows = []
        if minutes is not None:
            rows.append(
                {
                    "event_id": event_id,
                    "reminder_type": REMINDER_TYPE_NOTIFICATION,
                    "reminder_time": minutes,
                }
            )
        try:
            self._replace(TABLE_EVENT_REMINDERS, event_id, rows)
        except RemoteError as e:
            self._report(event_id, SatelliteKind.REMINDER, e)
            return False
        logger.debug(f"Reconciled reminder '{reminder}' for event {event_id}")
        return True

    def reconcile_documents(self, event_id: str, documents: List[EventDocument]) -> bool:
        """Replace the linked document rows of an event."""
        rows = [
            {"event_id": event_id, "name": doc.name, "url": doc.url}
            for doc in documents
        ]
        try:
            self._replace(TABLE_EVENT_DOCUMENTS, event_id, rows)
        except RemoteError as e:
            self._report(event_id, SatelliteKind.DOCUMENTS, e)
            return False
        logger.debug(f"Reconciled {len(rows)} document(s) for event {event_id}")
        return True

    def reconcile_all(self, event: Event) -> List[str]:
        """
        Reconcile every satellite set of an event.

        Returns:
            Kinds that failed, empty when all succeeded
        """
        event_id = event.template_id
        failed = []
        if not self.reconcile_attendees(event_id, event.attendees):
            failed.append(SatelliteKind.ATTENDEES)
        if not self.reconcile_reminder(event_id, event.reminder):
            failed.append(SatelliteKind.REMINDER)
        if not self.reconcile_documents(event_id, event.documents):
            failed.append(SatelliteKind.DOCUMENTS)
        if failed:
            logger.warning(f"Event {event_id} saved with stale {', '.join(failed)}")
        return failed

    def delete_all(self, event_id: str):
        """
        Remove every satellite row of an event.

        Raises:
            RemoteError: If a delete fails
        """
        for table in (TABLE_EVENT_ATTENDEES, TABLE_EVENT_REMINDERS, TABLE_EVENT_DOCUMENTS):
            self.storage.delete(table, {"event_id": event_id})

    def load_attendees(self, event_id: str) -> List[str]:
        rows = self.storage.select(TABLE_EVENT_ATTENDEES, {"event_id": event_id})
        return [value for value in (attendee_from_row(row) for row in rows) if value]

    def load_reminder(self, event_id: str) -> str:
        # Earliest reminder wins when several are stored
        rows = self.storage.select(
            TABLE_EVENT_REMINDERS,
            {"event_id": event_id},
            order_by="reminder_time",
            limit=1,
        )
        if not rows:
            return Reminder.NONE
        return Reminder.from_minutes(rows[0].get("reminder_time"))

    def load_documents(self, event_id: str) -> List[EventDocument]:
        rows = self.storage.select(TABLE_EVENT_DOCUMENTS, {"event_id": event_id})
        return [
            EventDocument(name=row["name"], url=row["url"], id=row.get("id"))
            for row in rows
        ]

    def load_into(self, event: Event) -> Event:
        """
        Fill an event's satellites from storage.

        Raises:
            RemoteError: If a read fails
        """
        event.attendees = self.load_attendees(event.id)
        event.reminder = self.load_reminder(event.id)
        event.documents = self.load_documents(event.id)
        return event
