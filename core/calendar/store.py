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
Calendar store for lexcal.

Holds the client-side cache of calendars and events and keeps it in step
with storage. Mutations are applied to the cache first and then written;
a failed write leaves the cache as it is and is reported through the
returned ``MutationResult``.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from config.constants import TABLE_CALENDARS, TABLE_EVENTS
from core.calendar.auth import AuthContext
from core.calendar.constants import Reminder
from core.calendar.event_types import EventTypeRegistry
from core.calendar.exceptions import (
    CalendarNotFoundError,
    EventNotFoundError,
    RemoteError,
    ValidationError,
)
from core.calendar.mapper import calendar_to_domain, calendar_to_row, event_to_domain, event_to_row
from core.calendar.models import Calendar, Event, MutationResult, RecurrencePattern, generate_uuid
from core.calendar.reconciler import SubEntityReconciler
from core.calendar.recurrence import expand_window
from core.calendar.validation import (
    is_valid_uuid,
    require_uuid,
    validate_calendar,
    validate_event,
    validate_event_recurrence,
    validate_recurrence,
)
from core.calendar.visibility import visible_events, with_calendar_colors

logger = logging.getLogger("lexcal.calendar.store")


class CalendarStore:
    """
    Client-side calendar and event cache backed by a StorageClient.

    Responsibilities:
    - Loading calendars (split into the user's own and shared ones) and events
    - CRUD for calendars and events with local-first updates
    - Keeping attendee/reminder/document tables in step with events
    - Producing the visible, expanded event list for a time window
    """

    def __init__(self, storage, auth: Optional[AuthContext] = None):
        """
        Initialize the calendar store.

        Args:
            storage: StorageClient implementation
            auth: Current-user accessor
        """
        self.storage = storage
        self.auth = auth or AuthContext()
        self.event_types = EventTypeRegistry(storage)
        self.reconciler = SubEntityReconciler(storage)

        self.my_calendars: List[Calendar] = []
        self.other_calendars: List[Calendar] = []
        self.events: List[Event] = []
        self.loading = False
        self.error: Optional[str] = None

        logger.info("CalendarStore initialized")

    # Reads

    def _calendar_colors(self) -> Dict[str, str]:
        return {c.id: c.color for c in self.all_calendars()}

    def all_calendars(self) -> List[Calendar]:
        return [*self.my_calendars, *self.other_calendars]

    def fetch_calendars(self) -> List[Calendar]:
        """
        Load calendars and split them into the user's own and shared ones.

        Own calendars start checked, shared ones unchecked; a calendar seen
        before keeps its checked state. An unauthenticated caller or a
        storage failure leaves both collections empty and sets ``error``.

        Returns:
            All visible calendars
        """
        self.loading = True
        self.error = None
        try:
            if not self.auth.is_authenticated:
                logger.warning("Cannot fetch calendars: not authenticated")
                self.my_calendars = []
                self.other_calendars = []
                self.error = "Not authenticated"
                return []

            user_id = self.auth.user_id
            previous = {c.id: c.checked for c in self.all_calendars()}
            rows = self.storage.select(TABLE_CALENDARS, order_by="name")

            mine = []
            others = []
            for row in rows:
                calendar = calendar_to_domain(row, user_id)
                if calendar.id in previous:
                    calendar.checked = previous[calendar.id]
                if calendar.is_owned_by(user_id):
                    mine.append(calendar)
                elif calendar.is_visible_to_others():
                    others.append(calendar)

            self.my_calendars = mine
            self.other_calendars = others
            logger.info(f"Loaded {len(mine)} own and {len(others)} shared calendar(s)")
            return self.all_calendars()

        except RemoteError as e:
            logger.error(f"Failed to fetch calendars: {e}")
            self.my_calendars = []
            self.other_calendars = []
            self.error = str(e)
            return []
        finally:
            self.loading = False

    def fetch_events(self) -> List[Event]:
        """
        Load events with their attendees, reminder and documents.

        Rows that cannot be mapped are skipped with a warning. An event whose
        satellites cannot be read is kept without them. A storage failure
        leaves the collection empty and sets ``error``.

        Returns:
            Cached events (templates, not expanded)
        """
        self.loading = True
        self.error = None
        try:
            if not self.auth.is_authenticated:
                logger.warning("Cannot fetch events: not authenticated")
                self.events = []
                self.error = "Not authenticated"
                return []

            self.event_types.load()
            colors = self._calendar_colors()
            rows = self.storage.select(TABLE_EVENTS, order_by="start_time")

            events = []
            for row in rows:
                try:
                    event = event_to_domain(row, self.event_types, colors)
                    validate_event_recurrence(event)
                except ValidationError as e:
                    logger.warning(f"Skipping unreadable event row {row.get('id')}: {e}")
                    continue
                try:
                    self.reconciler.load_into(event)
                except RemoteError as e:
                    logger.warning(f"Loaded event {event.id} without satellites: {e}")
                    event.attendees = []
                    event.reminder = Reminder.NONE
                    event.documents = []
                events.append(event)

            self.events = events
            logger.info(f"Loaded {len(events)} event(s)")
            return list(events)

        except RemoteError as e:
            logger.error(f"Failed to fetch events: {e}")
            self.events = []
            self.error = str(e)
            return []
        finally:
            self.loading = False

    def refresh(self) -> bool:
        """
        Reload calendars and then events.

        Returns:
            True when both loads succeeded
        """
        self.fetch_calendars()
        if self.error is not None:
            self.events = []
            return False
        self.fetch_events()
        return self.error is None

    def get_event(self, event_id: str) -> Optional[Event]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def get_calendar(self, calendar_id: str) -> Optional[Calendar]:
        for calendar in self.all_calendars():
            if calendar.id == calendar_id:
                return calendar
        return None

    def events_in_range(self, start: datetime, end: datetime) -> List[Event]:
        """
        Events to display in a window.

        Recurring templates are expanded, events on unchecked calendars are
        dropped and each event is given its calendar's colour.

        Args:
            start: Window start
            end: Window end

        Returns:
            Events sorted by start
        """
        expanded = expand_window(self.events, start, end)
        shown = visible_events(expanded, self.my_calendars, self.other_calendars)
        events = with_calendar_colors(shown, self.all_calendars())
        logger.debug(f"{len(events)} visible event(s) from {start} to {end}")
        return events

    def snapshot(self) -> Dict[str, Any]:
        """Current state for display."""
        return {
            "my_calendars": list(self.my_calendars),
            "other_calendars": list(self.other_calendars),
            "events": list(self.events),
            "loading": self.loading,
            "error": self.error,
        }

    # Writes

    def _failed(
        self, operation: str, entity: Any, applied: bool, error: RemoteError
    ) -> MutationResult:
        logger.error(f"Failed to {operation}: {error}")
        self.error = str(error)
        return MutationResult(applied=applied, persisted=False, entity=entity, error=error)

    def _write(
        self, operation: str, entity: Any, applied: bool, write: Callable[[], Any]
    ) -> MutationResult:
        try:
            write()
        except RemoteError as e:
            return self._failed(operation, entity, applied, e)
        return MutationResult(applied=applied, persisted=True, entity=entity)

    def _replace_event(self, event: Event) -> bool:
        found = any(e.id == event.id for e in self.events)
        if found:
            self.events = [event if e.id == event.id else e for e in self.events]
        return found

    def create_calendar(self, calendar: Calendar) -> MutationResult:
        """
        Create a calendar owned by the current user.

        Args:
            calendar: Calendar to create; a non-UUID id is replaced

        Returns:
            MutationResult with the created calendar

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the calendar is invalid
        """
        user_id = self.auth.require_user_id("create calendar")
        validate_calendar(calendar)

        created = replace(
            calendar,
            id=calendar.id if is_valid_uuid(calendar.id) else generate_uuid(),
            owner_id=user_id,
            checked=True,
            shared_with=list(calendar.shared_with),
        )
        self.my_calendars = [*self.my_calendars, created]
        logger.info(f"Created calendar locally: {created.id} - {created.name}")

        return self._write(
            f"create calendar {created.id}",
            created,
            True,
            lambda: self.storage.insert(TABLE_CALENDARS, [calendar_to_row(created)]),
        )

    def update_calendar(self, calendar: Calendar) -> MutationResult:
        """
        Update a calendar's stored fields.

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the calendar is invalid
        """
        self.auth.require_user_id("update calendar")
        validate_calendar(calendar, is_update=True)

        applied = False
        if any(c.id == calendar.id for c in self.my_calendars):
            self.my_calendars = [calendar if c.id == calendar.id else c for c in self.my_calendars]
            applied = True
        elif any(c.id == calendar.id for c in self.other_calendars):
            self.other_calendars = [
                calendar if c.id == calendar.id else c for c in self.other_calendars
            ]
            applied = True

        values = calendar_to_row(calendar)
        del values["id"]
        # Ownership does not change on update
        del values["user_id"]

        return self._write(
            f"update calendar {calendar.id}",
            calendar,
            applied,
            lambda: self.storage.update(TABLE_CALENDARS, values, {"id": calendar.id}),
        )

    def delete_calendar(self, calendar_id: str) -> MutationResult:
        """
        Delete a calendar and drop its events from the cache.

        Storage removes the calendar's events through its foreign keys.

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the id is not a UUID
        """
        self.auth.require_user_id("delete calendar")
        require_uuid(calendar_id, "id")

        removed = self.get_calendar(calendar_id)
        self.my_calendars = [c for c in self.my_calendars if c.id != calendar_id]
        self.other_calendars = [c for c in self.other_calendars if c.id != calendar_id]
        self.events = [e for e in self.events if e.calendar != calendar_id]
        logger.info(f"Deleted calendar locally: {calendar_id}")

        return self._write(
            f"delete calendar {calendar_id}",
            removed,
            removed is not None,
            lambda: self.storage.delete(TABLE_CALENDARS, {"id": calendar_id}),
        )

    def toggle_calendar(self, calendar_id: str) -> Calendar:
        """
        Flip a calendar's checked state. Not persisted.

        Raises:
            CalendarNotFoundError: If the calendar is not cached
        """
        calendar = self.get_calendar(calendar_id)
        if calendar is None:
            raise CalendarNotFoundError(calendar_id)

        toggled = replace(calendar, checked=not calendar.checked)
        self.my_calendars = [toggled if c.id == calendar_id else c for c in self.my_calendars]
        self.other_calendars = [
            toggled if c.id == calendar_id else c for c in self.other_calendars
        ]
        logger.debug(f"Calendar {calendar_id} checked={toggled.checked}")
        return toggled

    def create_event(self, event: Event) -> MutationResult:
        """
        Create an event with its attendees, reminder and documents.

        Args:
            event: Event to create; a non-UUID id is replaced

        Returns:
            MutationResult with the created event

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the event is invalid
        """
        user_id = self.auth.require_user_id("create event")
        validate_event(event)

        created = event.copy(
            id=event.id if is_valid_uuid(event.id) else generate_uuid(),
            created_by=user_id,
            occurrence=None,
        )
        if created.is_all_day:
            created.set_all_day(True)

        self.events = [*self.events, created]
        logger.info(f"Created event locally: {created.id} - {created.title}")

        try:
            row = event_to_row(created, self.event_types)
            row["created_by"] = user_id
            self.storage.insert(TABLE_EVENTS, [row])
        except RemoteError as e:
            return self._failed(f"create event {created.id}", created, True, e)

        stored = created.copy(event_type_id=row["event_type_id"])
        self._replace_event(stored)
        self.reconciler.reconcile_all(stored)
        return MutationResult(applied=True, persisted=True, entity=stored)

    def update_event(self, event: Event) -> MutationResult:
        """
        Update an event and replace its attendees, reminder and documents.

        A known type id is kept; the type name ``default`` clears the type.

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the event is invalid
        """
        self.auth.require_user_id("update event")
        validate_event(event, is_update=True)

        updated = event.copy()
        if updated.is_all_day:
            updated.set_all_day(True)

        applied = self._replace_event(updated)
        if not applied:
            logger.warning(f"Updating event {updated.id} that is not cached")

        try:
            values = event_to_row(updated, self.event_types, prefer_known_type_id=True)
            del values["id"]
            rows = self.storage.update(TABLE_EVENTS, values, {"id": updated.id})
        except RemoteError as e:
            return self._failed(f"update event {updated.id}", updated, applied, e)

        if not rows:
            return self._failed(
                f"update event {updated.id}",
                updated,
                applied,
                RemoteError(
                    f"No stored row matched event {updated.id}",
                    table=TABLE_EVENTS,
                    operation="update",
                ),
            )

        stored = updated.copy(event_type_id=values["event_type_id"])
        self._replace_event(stored)
        self.reconciler.reconcile_all(stored)
        return MutationResult(applied=applied, persisted=True, entity=stored)

    def delete_event(self, event_id: str) -> MutationResult:
        """
        Delete an event; satellite rows go first, then the event row.

        Raises:
            UnauthenticatedError: If no user is signed in
            ValidationError: If the id is not a UUID
        """
        self.auth.require_user_id("delete event")
        require_uuid(event_id, "id")

        removed = self.get_event(event_id)
        self.events = [e for e in self.events if e.id != event_id]
        logger.info(f"Deleted event locally: {event_id}")

        def write():
            self.reconciler.delete_all(event_id)
            self.storage.delete(TABLE_EVENTS, {"id": event_id})

        return self._write(f"delete event {event_id}", removed, removed is not None, write)

    def make_event_recurring(self, event_id: str, pattern: RecurrencePattern) -> MutationResult:
        """
        Attach a recurrence pattern to a cached event.

        Raises:
            EventNotFoundError: If the event is not cached
        """
        event = self.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        validate_recurrence(pattern)
        return self.update_event(event.copy(is_recurring=True, recurrence_pattern=pattern))

    def make_event_non_recurring(self, event_id: str) -> MutationResult:
        """
        Remove the recurrence pattern from a cached event.

        Raises:
            EventNotFoundError: If the event is not cached
        """
        event = self.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return self.update_event(event.copy(is_recurring=False, recurrence_pattern=None))
