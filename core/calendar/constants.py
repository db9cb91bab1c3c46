# SPDX-License-Identifier: Apache-2.0
"""
Constants for the calendar core.

Defines event types, recurrence frequencies and reminder codes to avoid
hardcoded strings.
"""


class EventType:
    """Enumeration of supported event types."""

    CLIENT_MEETING = "client-meeting"
    INTERNAL_MEETING = "internal-meeting"
    COURT = "court"
    DEADLINE = "deadline"
    PERSONAL = "personal"

    # Update-only sentinel: clears the event's type
    CLEAR = "default"

    DEFAULT = CLIENT_MEETING

    @classmethod
    def list(cls):
        """Return list of all event types."""
        return [
            cls.CLIENT_MEETING,
            cls.INTERNAL_MEETING,
            cls.COURT,
            cls.DEADLINE,
            cls.PERSONAL,
        ]


class Frequency:
    """Enumeration of recurrence frequencies."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def list(cls):
        """Return list of all frequencies."""
        return [cls.DAILY, cls.WEEKLY, cls.MONTHLY, cls.YEARLY]


class Reminder:
    """Enumeration of reminder codes and their stored offsets."""

    NONE = "none"
    FIVE_MINUTES = "5min"
    FIFTEEN_MINUTES = "15min"
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    ONE_DAY = "1day"

    MINUTES = {
        FIVE_MINUTES: 5,
        FIFTEEN_MINUTES: 15,
        THIRTY_MINUTES: 30,
        ONE_HOUR: 60,
        ONE_DAY: 1440,
    }

    @classmethod
    def list(cls):
        """Return list of all reminder codes."""
        return [cls.NONE, *cls.MINUTES.keys()]

    @classmethod
    def to_minutes(cls, code: str):
        """Offset in minutes, or None for ``none``."""
        if code == cls.NONE or code is None:
            return None
        if code not in cls.MINUTES:
            raise ValueError(f"Unknown reminder code: {code}")
        return cls.MINUTES[code]

    @classmethod
    def from_minutes(cls, minutes) -> str:
        """Reminder code for a stored offset; unknown offsets map to ``none``."""
        for code, value in cls.MINUTES.items():
            if value == minutes:
                return code
        return cls.NONE


class SatelliteKind:
    """Names of the per-event satellite collections."""

    ATTENDEES = "attendees"
    REMINDER = "reminder"
    DOCUMENTS = "documents"
