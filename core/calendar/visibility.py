# SPDX-License-Identifier: Apache-2.0
"""
Calendar visibility and colour overlay for display.
"""

from typing import Iterable, List

from config.constants import DEFAULT_CALENDAR_COLOR
from core.calendar.models import Calendar, Event


def visible_events(
    all_events: Iterable[Event],
    my_calendars: Iterable[Calendar],
    other_calendars: Iterable[Calendar],
) -> List[Event]:
    """Keep events whose calendar is checked in either calendar set."""
    checked = {c.id for c in my_calendars if c.checked}
    checked.update(c.id for c in other_calendars if c.checked)
    return [event for event in all_events if event.calendar in checked]


def with_calendar_colors(events: Iterable[Event], calendars: Iterable[Calendar]) -> List[Event]:
    """Return copies of events with ``calendar_color`` taken from their calendar."""
    colors = {c.id: c.color for c in calendars}
    return [
        event.copy(calendar_color=colors.get(event.calendar) or DEFAULT_CALENDAR_COLOR)
        for event in events
    ]
