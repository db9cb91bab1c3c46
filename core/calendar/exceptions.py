# SPDX-License-Identifier: Apache-2.0
"""
Exceptions for the calendar core.

``RemoteError`` is shared with the storage backends in ``data.storage``;
everything else is raised by the store and its helpers.
"""

from typing import Optional


class CalendarError(Exception):
    """Base exception for calendar operations."""

    pass


class ValidationError(CalendarError):
    """Raised when an entity or identifier is rejected before any storage call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnauthenticatedError(CalendarError):
    """Raised when a mutation is attempted without a signed-in user."""

    def __init__(self, operation: Optional[str] = None):
        message = "Not authenticated"
        if operation:
            message = f"Not authenticated: cannot {operation}"
        super().__init__(message)
        self.operation = operation


class RemoteError(CalendarError):
    """Raised when a storage operation fails."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.table = table
        self.operation = operation
        self.status_code = status_code


class SatelliteReconciliationError(CalendarError):
    """Describes a failed attendee/reminder/document write. Logged, never raised."""

    def __init__(self, event_id: str, kind: str, cause: Exception):
        super().__init__(f"Failed to reconcile {kind} for event {event_id}: {cause}")
        self.event_id = event_id
        self.kind = kind
        self.cause = cause


class EventNotFoundError(CalendarError):
    """Raised when an operation is performed on an event missing from the cache."""

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


class CalendarNotFoundError(CalendarError):
    """Raised when an operation is performed on a calendar missing from the cache."""

    def __init__(self, calendar_id: str):
        super().__init__(f"Calendar not found: {calendar_id}")
        self.calendar_id = calendar_id
