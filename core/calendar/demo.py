# SPDX-License-Identifier: Apache-2.0
"""
Demo calendars and events for offline use.

These fixtures are never mixed into the store's fetch path. They are
written into an empty local database on request, so the application has
something to show without a remote project.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from config.constants import TABLE_CALENDARS, TABLE_EVENTS
from core.calendar.constants import EventType, Frequency, Reminder
from core.calendar.event_types import EventTypeRegistry
from core.calendar.mapper import calendar_to_row, event_to_row
from core.calendar.models import Calendar, CourtInfo, Event, RecurrencePattern
from core.calendar.reconciler import SubEntityReconciler
from utils.time_utils import now_local, start_of_day

logger = logging.getLogger("lexcal.calendar.demo")

DEMO_FIRM_OWNER = "00000000-0000-4000-8000-000000000001"

EVENT_TYPE_COLORS = {
    EventType.CLIENT_MEETING: "#3B82F6",
    EventType.INTERNAL_MEETING: "#8B5CF6",
    EventType.COURT: "#EF4444",
    EventType.DEADLINE: "#F59E0B",
    EventType.PERSONAL: "#10B981",
}


def demo_calendars(user_id: str) -> Tuple[List[Calendar], List[Calendar]]:
    """Return (own, shared) demo calendars for a user."""
    mine = [
        Calendar(name="My Calendar", color="#3B82F6", owner_id=user_id, is_default=True),
        Calendar(name="Court Dates", color="#EF4444", owner_id=user_id),
    ]
    others = [
        Calendar(
            name="Firm Calendar",
            color="#10B981",
            owner_id=DEMO_FIRM_OWNER,
            is_firm=True,
            checked=False,
        ),
        Calendar(
            name="Statute of Limitations",
            color="#F59E0B",
            owner_id=DEMO_FIRM_OWNER,
            is_firm=True,
            is_statute=True,
            checked=False,
        ),
    ]
    return mine, others


def demo_events(
    mine: List[Calendar], others: List[Calendar], today: Optional[datetime] = None
) -> List[Event]:
    """Build a week of sample events around ``today``."""
    base = start_of_day(today or now_local())
    personal, court = mine[0], mine[1]
    firm = others[0]

    def at(days: int, hour: int, minute: int = 0) -> datetime:
        return base + timedelta(days=days, hours=hour, minutes=minute)

    standup = Event(
        title="Team Standup",
        start=at(0, 9),
        end=at(0, 9, 30),
        calendar=firm.id,
        type=EventType.INTERNAL_MEETING,
        color=EVENT_TYPE_COLORS[EventType.INTERNAL_MEETING],
        is_recurring=True,
        recurrence_pattern=RecurrencePattern(frequency=Frequency.DAILY, occurrences=10),
        reminder=Reminder.FIVE_MINUTES,
    )
    client = Event(
        title="Client Consultation",
        description="Initial review of the lease dispute",
        location="Conference Room B",
        start=at(1, 14),
        end=at(1, 15),
        calendar=personal.id,
        type=EventType.CLIENT_MEETING,
        color=EVENT_TYPE_COLORS[EventType.CLIENT_MEETING],
        attendees=["jane.doe@example.com", "Robert Smith"],
        reminder=Reminder.FIFTEEN_MINUTES,
        client_name="Jane Doe",
    )
    hearing = Event(
        title="Motion Hearing",
        location="County Courthouse, Room 4",
        start=at(3, 10),
        end=at(3, 11, 30),
        calendar=court.id,
        type=EventType.COURT,
        color=EVENT_TYPE_COLORS[EventType.COURT],
        reminder=Reminder.ONE_DAY,
        court_info=CourtInfo(
            court_name="Superior Court",
            judge_details="Hon. A. Reyes",
            docket_number="CV-2024-0113",
        ),
    )
    filing = Event(
        title="Discovery Responses Due",
        start=at(5, 0),
        end=at(5, 0),
        calendar=personal.id,
        type=EventType.DEADLINE,
        color=EVENT_TYPE_COLORS[EventType.DEADLINE],
        reminder=Reminder.ONE_DAY,
    )
    filing.set_all_day(True)

    return [standup, client, hearing, filing]


def seed_storage(storage, user_id: str, today: Optional[datetime] = None) -> int:
    """
    Write the demo data into storage if it holds no calendars yet.

    Args:
        storage: StorageClient to populate
        user_id: Owner of the personal demo calendars
        today: Anchor date for the sample events

    Returns:
        Number of events written (0 when storage was not empty)
    """
    if storage.select(TABLE_CALENDARS, limit=1):
        logger.info("Storage already has calendars, skipping demo data")
        return 0

    mine, others = demo_calendars(user_id)
    events = demo_events(mine, others, today)

    storage.insert(TABLE_CALENDARS, [calendar_to_row(c) for c in [*mine, *others]])

    event_types = EventTypeRegistry(storage)
    reconciler = SubEntityReconciler(storage)
    for event in events:
        row = event_to_row(event, event_types)
        row["created_by"] = user_id
        storage.insert(TABLE_EVENTS, [row])
        reconciler.reconcile_all(event)

    logger.info(f"Seeded {len(mine) + len(others)} demo calendar(s) and {len(events)} event(s)")
    return len(events)
