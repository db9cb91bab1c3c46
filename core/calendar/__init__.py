# SPDX-License-Identifier: Apache-2.0
"""
Calendar core for lexcal.

Calendars, events, recurrence expansion and the storage-backed store.
"""

from core.calendar.auth import AuthContext
from core.calendar.models import (
    Calendar,
    CourtInfo,
    Event,
    EventDocument,
    MutationResult,
    OccurrenceKey,
    RecurrencePattern,
)
from core.calendar.refresh_scheduler import RefreshScheduler
from core.calendar.store import CalendarStore

__all__ = [
    "AuthContext",
    "Calendar",
    "CalendarStore",
    "CourtInfo",
    "Event",
    "EventDocument",
    "MutationResult",
    "OccurrenceKey",
    "RecurrencePattern",
    "RefreshScheduler",
]
