# SPDX-License-Identifier: Apache-2.0
"""
Pre-write validation for calendars and events.

Everything here runs before any storage call and raises
``ValidationError`` on the first problem found.
"""

import re
from typing import Any

from core.calendar.constants import Frequency, Reminder
from core.calendar.exceptions import ValidationError

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def is_valid_uuid(value: Any) -> bool:
    """Whether value is an RFC 4122 (v1-v5) UUID string."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def require_uuid(value: Any, field: str):
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    if not is_valid_uuid(value):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)


def validate_recurrence(pattern):
    """Check a RecurrencePattern's frequency and bounds."""
    if pattern.frequency not in Frequency.list():
        raise ValidationError(
            f"Unsupported recurrence frequency: {pattern.frequency!r}",
            field="recurrence_pattern",
        )
    if pattern.interval is None or pattern.interval < 1:
        raise ValidationError(
            f"Recurrence interval must be at least 1, got {pattern.interval!r}",
            field="recurrence_pattern",
        )
    if pattern.occurrences is not None and pattern.occurrences < 0:
        raise ValidationError(
            "Recurrence occurrences must not be negative", field="recurrence_pattern"
        )
    if pattern.weekdays and any(not 0 <= day <= 6 for day in pattern.weekdays):
        raise ValidationError(
            f"Recurrence weekdays must be 0-6, got {pattern.weekdays!r}",
            field="recurrence_pattern",
        )
    if pattern.month_day is not None and not 1 <= pattern.month_day <= 31:
        raise ValidationError(
            f"Recurrence month day must be 1-31, got {pattern.month_day!r}",
            field="recurrence_pattern",
        )


def validate_event_recurrence(event):
    """A recurring event needs a valid pattern."""
    if not event.is_recurring:
        return
    if event.recurrence_pattern is None:
        raise ValidationError(
            f"Recurring event {event.id} has no recurrence pattern",
            field="recurrence_pattern",
        )
    validate_recurrence(event.recurrence_pattern)


def validate_event(event, is_update: bool = False):
    """
    Validate an event before it is written.

    Args:
        event: Event to check
        is_update: Whether the id must already be a valid UUID

    Raises:
        ValidationError: On the first invalid field
    """
    if is_update:
        require_uuid(event.id, "id")

    require_uuid(event.calendar, "calendar")

    if not event.title or not event.title.strip():
        raise ValidationError("Event title is required", field="title")

    if event.start is None:
        raise ValidationError("Event start time is required", field="start")
    if event.end is None:
        raise ValidationError("Event end time is required", field="end")

    if event.reminder not in Reminder.list():
        raise ValidationError(f"Unknown reminder: {event.reminder!r}", field="reminder")

    validate_event_recurrence(event)


def validate_calendar(calendar, is_update: bool = False):
    """Validate a calendar before it is written."""
    if is_update:
        require_uuid(calendar.id, "id")

    if not calendar.name or not calendar.name.strip():
        raise ValidationError("Calendar name is required", field="name")

    if not calendar.color or not HEX_COLOR_PATTERN.match(calendar.color):
        raise ValidationError(f"Invalid calendar color: {calendar.color!r}", field="color")
