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
Domain models for calendars and events.

All datetimes are naive local wall-clock values.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.constants import DEFAULT_CALENDAR_COLOR, DEFAULT_EVENT_COLOR
from core.calendar.constants import EventType, Reminder
from core.calendar.exceptions import ValidationError
from utils.time_utils import end_of_day, epoch_millis, parse_timestamp, start_of_day, to_iso_timestamp

logger = logging.getLogger("lexcal.calendar.models")


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


@dataclass
class RecurrencePattern:
    """Recurrence rule attached to a template event."""

    frequency: str
    interval: int = 1
    end_date: Optional[datetime] = None
    occurrences: Optional[int] = None
    # Weekly only: 0 = Monday ... 6 = Sunday
    weekdays: Optional[List[int]] = None
    # Monthly only: clamped to the last day of shorter months
    month_day: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the stored key names."""
        data: Dict[str, Any] = {
            "frequency": self.frequency,
            "interval": self.interval,
        }
        if self.end_date is not None:
            data["endDate"] = to_iso_timestamp(self.end_date)
        if self.occurrences is not None:
            data["occurrences"] = self.occurrences
        if self.weekdays:
            data["weekdays"] = list(self.weekdays)
        if self.month_day is not None:
            data["monthDay"] = self.month_day
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_value(cls, value: Any) -> Optional["RecurrencePattern"]:
        """
        Parse a stored pattern.

        Args:
            value: JSON string, already-decoded mapping, or None

        Returns:
            RecurrencePattern, or None for empty input

        Raises:
            ValidationError: If the value is not a valid pattern
        """
        if value is None or value == "":
            return None

        if isinstance(value, RecurrencePattern):
            return value

        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValidationError(
                    f"Invalid recurrence pattern: {e}", field="recurrence_pattern"
                ) from e

        if not isinstance(value, dict):
            raise ValidationError(
                "Recurrence pattern must be an object", field="recurrence_pattern"
            )

        frequency = value.get("frequency")
        if not frequency:
            raise ValidationError(
                "Recurrence pattern is missing a frequency", field="recurrence_pattern"
            )

        try:
            interval = int(value.get("interval", 1))
            occurrences = value.get("occurrences")
            if occurrences is not None:
                occurrences = int(occurrences)
            end_date = parse_timestamp(value.get("endDate"))
            weekdays = value.get("weekdays")
            if weekdays is not None:
                weekdays = [int(day) for day in weekdays]
            month_day = value.get("monthDay")
            if month_day is not None:
                month_day = int(month_day)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid recurrence pattern: {e}", field="recurrence_pattern"
            ) from e

        return cls(
            frequency=frequency,
            interval=interval,
            end_date=end_date,
            occurrences=occurrences,
            weekdays=weekdays or None,
            month_day=month_day,
        )


@dataclass(frozen=True)
class OccurrenceKey:
    """Identity of one materialized instance of a recurring template."""

    template_id: str
    index: int
    start: datetime

    @property
    def instance_id(self) -> str:
        return f"{self.template_id}-{epoch_millis(self.start)}"


@dataclass
class CourtInfo:
    court_name: Optional[str] = None
    judge_details: Optional[str] = None
    docket_number: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.court_name or self.judge_details or self.docket_number)


@dataclass
class EventDocument:
    name: str
    url: str
    id: Optional[str] = None


@dataclass
class Calendar:
    """A named, coloured grouping of events."""

    id: str = field(default_factory=generate_uuid)
    name: str = ""
    color: str = DEFAULT_CALENDAR_COLOR
    checked: bool = True
    owner_id: Optional[str] = None
    is_firm: bool = False
    is_statute: bool = False
    is_public: bool = False
    is_default: bool = False
    # Client-side only, never persisted
    shared_with: List[str] = field(default_factory=list)

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return self.owner_id is not None and self.owner_id == user_id

    def is_visible_to_others(self) -> bool:
        return self.is_public or self.is_firm


@dataclass
class Event:
    """A calendar event, either a one-off, a recurring template or an instance."""

    id: str = field(default_factory=generate_uuid)
    title: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    calendar: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False
    type: str = EventType.DEFAULT
    event_type_id: Optional[str] = None
    color: str = DEFAULT_EVENT_COLOR
    calendar_color: str = DEFAULT_CALENDAR_COLOR
    is_recurring: bool = False
    recurrence_pattern: Optional[RecurrencePattern] = None
    attendees: List[str] = field(default_factory=list)
    reminder: str = Reminder.NONE
    documents: List[EventDocument] = field(default_factory=list)
    case_id: Optional[str] = None
    client_name: Optional[str] = None
    assigned_lawyer: Optional[str] = None
    court_info: Optional[CourtInfo] = None
    created_by: Optional[str] = None
    occurrence: Optional[OccurrenceKey] = None

    def set_all_day(self, all_day: bool = True):
        """Toggle all-day; turning it on snaps start/end to the day bounds."""
        self.is_all_day = all_day
        if all_day:
            if self.start is not None:
                self.start = start_of_day(self.start)
            if self.end is not None:
                self.end = end_of_day(self.end)

    @property
    def template_id(self) -> str:
        """Id of the stored row this event comes from."""
        if self.occurrence is not None:
            return self.occurrence.template_id
        return self.id

    def overlaps(self, range_start: datetime, range_end: datetime) -> bool:
        if self.start is None or self.end is None:
            return False
        return self.start <= range_end and self.end >= range_start

    def copy(self, **changes) -> "Event":
        """Shallow copy with list fields detached from the original."""
        changes.setdefault("attendees", list(self.attendees))
        changes.setdefault("documents", list(self.documents))
        return replace(self, **changes)


@dataclass
class MutationResult:
    """
    Outcome of a store mutation.

    ``applied`` means the local cache changed; ``persisted`` means the
    primary storage write succeeded.
    """

    applied: bool
    persisted: bool
    entity: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.applied and self.persisted

    def raise_for_error(self):
        if self.error is not None:
            raise self.error
        return self
