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
Conversion between storage rows and domain objects.

Event rows carry a type id and flattened court fields; the domain event
carries the type name, a colour and a ``CourtInfo``. Satellite collections
(attendees, reminder, documents) are not part of the row and are filled in
separately by the reconciler.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from config.constants import DEFAULT_CALENDAR_COLOR, DEFAULT_EVENT_COLOR
from core.calendar.constants import EventType, Reminder
from core.calendar.exceptions import ValidationError
from core.calendar.models import Calendar, CourtInfo, Event, RecurrencePattern
from utils.time_utils import is_all_day_span, parse_timestamp, to_iso_timestamp

logger = logging.getLogger("lexcal.calendar.mapper")

EVENT_COLUMNS = (
    "id",
    "title",
    "description",
    "location",
    "start_time",
    "end_time",
    "is_recurring",
    "recurrence_pattern",
    "event_type_id",
    "calendar_id",
    "case_id",
    "client_name",
    "assigned_lawyer",
    "court_name",
    "judge_details",
    "docket_number",
)


def _parse_time(row: Mapping[str, Any], column: str):
    try:
        return parse_timestamp(row.get(column))
    except ValueError as e:
        raise ValidationError(str(e), field=column) from e


def event_to_domain(
    row: Mapping[str, Any],
    event_type_lookup=None,
    calendar_color_lookup: Optional[Mapping[str, str]] = None,
) -> Event:
    """
    Build an Event from an ``events`` row.

    Args:
        row: Stored row
        event_type_lookup: Anything with ``get(type_id)`` returning a record
            with ``name`` and ``color``
        calendar_color_lookup: Mapping of calendar id to colour

    Returns:
        Event without satellites

    Raises:
        ValidationError: If the row has no calendar or unreadable times
    """
    calendar_id = row.get("calendar_id")
    if not calendar_id:
        raise ValidationError(
            f"Event row {row.get('id')} has no calendar_id", field="calendar_id"
        )

    type_id = row.get("event_type_id")
    record = event_type_lookup.get(type_id) if (event_type_lookup and type_id) else None
    if record is not None:
        type_name = record.name
        color = record.color or DEFAULT_EVENT_COLOR
    else:
        type_name = EventType.DEFAULT
        color = DEFAULT_EVENT_COLOR

    calendar_color = DEFAULT_CALENDAR_COLOR
    if calendar_color_lookup:
        calendar_color = calendar_color_lookup.get(calendar_id) or DEFAULT_CALENDAR_COLOR

    start = _parse_time(row, "start_time")
    end = _parse_time(row, "end_time")

    court_info = CourtInfo(
        court_name=row.get("court_name"),
        judge_details=row.get("judge_details"),
        docket_number=row.get("docket_number"),
    )

    return Event(
        id=row["id"],
        title=row.get("title") or "",
        description=row.get("description"),
        location=row.get("location"),
        start=start,
        end=end,
        is_all_day=bool(start and end and is_all_day_span(start, end)),
        type=type_name,
        event_type_id=type_id if record is not None else None,
        color=color,
        calendar_color=calendar_color,
        calendar=calendar_id,
        is_recurring=bool(row.get("is_recurring")),
        recurrence_pattern=RecurrencePattern.from_value(row.get("recurrence_pattern")),
        attendees=[],
        reminder=Reminder.NONE,
        documents=[],
        case_id=row.get("case_id"),
        client_name=row.get("client_name"),
        assigned_lawyer=row.get("assigned_lawyer"),
        court_info=None if court_info.is_empty() else court_info,
        created_by=row.get("created_by"),
    )


def _event_type_id(event: Event, event_types, prefer_known_type_id: bool) -> Optional[str]:
    if prefer_known_type_id:
        if event.type == EventType.CLEAR:
            return None
        if event.event_type_id:
            record = event_types.get(event.event_type_id)
            # A stale id from before a type change does not win
            if record is None or record.name.lower() == (event.type or "").lower():
                return event.event_type_id

    if not event.type or event.type == EventType.CLEAR:
        return None
    return event_types.resolve(event.type, event.color or DEFAULT_EVENT_COLOR)


def event_to_row(event: Event, event_types, prefer_known_type_id: bool = False) -> Dict[str, Any]:
    """
    Flatten an Event into an ``events`` row.

    Args:
        event: Domain event
        event_types: EventTypeRegistry used to resolve the type id
        prefer_known_type_id: Keep ``event.event_type_id`` when set (updates)

    Returns:
        Row dict including ``id``
    """
    court_info = event.court_info or CourtInfo()
    pattern = event.recurrence_pattern if event.is_recurring else None

    return {
        "id": event.template_id,
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "start_time": to_iso_timestamp(event.start),
        "end_time": to_iso_timestamp(event.end),
        "is_recurring": bool(event.is_recurring),
        "recurrence_pattern": pattern.to_json() if pattern is not None else None,
        "event_type_id": _event_type_id(event, event_types, prefer_known_type_id),
        "calendar_id": event.calendar,
        "case_id": event.case_id,
        "client_name": event.client_name,
        "assigned_lawyer": event.assigned_lawyer,
        "court_name": court_info.court_name,
        "judge_details": court_info.judge_details,
        "docket_number": court_info.docket_number,
    }


def calendar_to_domain(row: Mapping[str, Any], current_user_id: Optional[str] = None) -> Calendar:
    """Build a Calendar; it starts checked only when the user owns it."""
    calendar = Calendar(
        id=row["id"],
        name=row.get("name") or "",
        color=row.get("color") or DEFAULT_CALENDAR_COLOR,
        owner_id=row.get("user_id"),
        is_firm=bool(row.get("is_firm")),
        is_statute=bool(row.get("is_statute")),
        is_public=bool(row.get("is_public")),
        is_default=bool(row.get("is_default")),
    )
    calendar.checked = calendar.is_owned_by(current_user_id)
    return calendar


def calendar_to_row(calendar: Calendar) -> Dict[str, Any]:
    """Flatten a Calendar; ``checked`` and ``shared_with`` are not stored."""
    return {
        "id": calendar.id,
        "name": calendar.name,
        "color": calendar.color,
        "user_id": calendar.owner_id,
        "is_default": bool(calendar.is_default),
        "is_firm": bool(calendar.is_firm),
        "is_statute": bool(calendar.is_statute),
        "is_public": bool(calendar.is_public),
    }
