# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for CalendarStore.

Tests calendar partitioning, event loading with satellites, local-first
mutations, validation gating and behaviour on storage failures.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from config.constants import (
    TABLE_CALENDARS,
    TABLE_EVENT_ATTENDEES,
    TABLE_EVENT_DOCUMENTS,
    TABLE_EVENT_REMINDERS,
    TABLE_EVENT_TYPES,
    TABLE_EVENTS,
)
from core.calendar.auth import AuthContext
from core.calendar.exceptions import (
    CalendarNotFoundError,
    EventNotFoundError,
    RemoteError,
    UnauthenticatedError,
    ValidationError,
)
from core.calendar.models import Calendar, Event, EventDocument, RecurrencePattern
from core.calendar.store import CalendarStore

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"

MINE_ID = "aaaaaaaa-0000-4000-8000-000000000001"
FIRM_ID = "aaaaaaaa-0000-4000-8000-000000000002"
PRIVATE_ID = "aaaaaaaa-0000-4000-8000-000000000003"
ORPHAN_ID = "aaaaaaaa-0000-4000-8000-000000000004"
EVENT_ID = "eeeeeeee-0000-4000-8000-000000000001"


@pytest.fixture
def seeded_storage(memory_storage):
    memory_storage.rows(TABLE_CALENDARS).extend(
        [
            {"id": MINE_ID, "name": "Mine", "color": "#111111", "user_id": USER_ID},
            {"id": FIRM_ID, "name": "Firm", "color": "#222222", "user_id": OTHER_USER_ID, "is_firm": True},
            {"id": PRIVATE_ID, "name": "Private", "color": "#333333", "user_id": OTHER_USER_ID},
            {"id": ORPHAN_ID, "name": "Orphan", "color": "#444444", "user_id": None, "is_public": True},
        ]
    )
    memory_storage.rows(TABLE_EVENT_TYPES).append(
        {"id": "type-court", "name": "court", "color": "#EF4444"}
    )
    memory_storage.rows(TABLE_EVENTS).append(
        {
            "id": EVENT_ID,
            "title": "Hearing",
            "start_time": "2024-03-01T10:00:00",
            "end_time": "2024-03-01T11:00:00",
            "calendar_id": MINE_ID,
            "event_type_id": "type-court",
            "is_recurring": False,
        }
    )
    memory_storage.rows(TABLE_EVENT_REMINDERS).append(
        {"id": "r1", "event_id": EVENT_ID, "reminder_type": "notification", "reminder_time": 60}
    )
    memory_storage.rows(TABLE_EVENT_ATTENDEES).append(
        {"id": "a1", "event_id": EVENT_ID, "name": None, "email": "ann@example.com"}
    )
    return memory_storage


@pytest.fixture
def store(seeded_storage, auth):
    return CalendarStore(seeded_storage, auth)


@pytest.fixture
def loaded_store(store):
    assert store.refresh()
    return store


def new_event(**overrides):
    values = dict(
        title="Deposition",
        start=datetime(2024, 3, 5, 13, 0),
        end=datetime(2024, 3, 5, 15, 0),
        calendar=MINE_ID,
        type="court",
        attendees=["ann@example.com", "Bob"],
        reminder="1hour",
        documents=[EventDocument(name="Notice.pdf", url="https://files.example.com/n")],
    )
    values.update(overrides)
    return Event(**values)


class TestFetchCalendars:
    """Test calendar loading and partitioning."""

    def test_partition_mine_and_shared(self, store):
        store.fetch_calendars()

        assert [c.id for c in store.my_calendars] == [MINE_ID]
        assert {c.id for c in store.other_calendars} == {FIRM_ID, ORPHAN_ID}
        assert all(c.checked for c in store.my_calendars)
        assert not any(c.checked for c in store.other_calendars)
        assert store.error is None
        assert store.loading is False

    def test_null_owner_is_never_mine(self, store):
        store.fetch_calendars()

        assert ORPHAN_ID not in [c.id for c in store.my_calendars]

    def test_unauthenticated_gets_empty_collections(self, seeded_storage):
        store = CalendarStore(seeded_storage, AuthContext())

        assert store.fetch_calendars() == []
        assert store.my_calendars == []
        assert store.other_calendars == []
        assert store.error
        assert seeded_storage.calls == []

    def test_storage_failure_degrades_to_empty(self, store, seeded_storage):
        seeded_storage.fail_on(TABLE_CALENDARS, "select")

        assert store.fetch_calendars() == []
        assert store.my_calendars == []
        assert "failed" in store.error

    def test_checked_state_survives_refetch(self, store):
        store.fetch_calendars()
        store.toggle_calendar(FIRM_ID)

        store.fetch_calendars()

        assert store.get_calendar(FIRM_ID).checked is True


class TestFetchEvents:
    """Test event loading."""

    def test_events_load_with_type_and_satellites(self, loaded_store):
        event = loaded_store.get_event(EVENT_ID)

        assert event.type == "court"
        assert event.color == "#EF4444"
        assert event.calendar_color == "#111111"
        assert event.reminder == "1hour"
        assert event.attendees == ["ann@example.com"]

    def test_unreadable_rows_are_skipped(self, store, seeded_storage):
        seeded_storage.rows(TABLE_EVENTS).append(
            {
                "id": "bad",
                "title": "No calendar",
                "start_time": "2024-03-01T10:00:00",
                "end_time": "2024-03-01T11:00:00",
                "calendar_id": None,
            }
        )

        store.refresh()

        assert [e.id for e in store.events] == [EVENT_ID]

    def test_failure_degrades_to_empty(self, store, seeded_storage):
        store.fetch_calendars()
        seeded_storage.fail_on(TABLE_EVENTS, "select")

        assert store.fetch_events() == []
        assert store.events == []
        assert store.error

    def test_refresh_reports_failure(self, store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENT_TYPES, "select")

        assert store.refresh() is False
        assert store.events == []

    def test_satellite_read_failure_keeps_event(self, store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENT_REMINDERS, "select")

        assert store.refresh() is True

        event = store.get_event(EVENT_ID)
        assert event.title == "Hearing"
        assert event.attendees == []
        assert event.reminder == "none"
        assert event.documents == []

    def test_recurring_row_without_pattern_is_skipped(self, store, seeded_storage):
        seeded_storage.rows(TABLE_EVENTS)[0]["is_recurring"] = True

        store.refresh()

        assert store.events == []

    def test_zero_interval_row_is_skipped(self, store, seeded_storage):
        seeded_storage.rows(TABLE_EVENTS)[0].update(
            is_recurring=True,
            recurrence_pattern='{"frequency": "daily", "interval": 0}',
        )

        store.refresh()

        assert store.events == []
        assert store.events_in_range(datetime(2024, 3, 1), datetime(2024, 3, 10)) == []

    def test_successful_fetch_clears_earlier_write_error(self, loaded_store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENTS, "insert")
        loaded_store.create_event(new_event())
        assert loaded_store.error
        seeded_storage.failures.clear()

        events = loaded_store.fetch_events()

        assert [e.id for e in events] == [EVENT_ID]
        assert loaded_store.error is None
        assert loaded_store.snapshot()["error"] is None


class TestValidationGating:
    """Mutations check auth and input before touching storage."""

    def test_create_event_without_calendar_makes_no_storage_calls(self, auth):
        storage = Mock()
        store = CalendarStore(storage, auth)

        with pytest.raises(ValidationError):
            store.create_event(new_event(calendar=""))

        assert storage.method_calls == []
        assert store.events == []

    def test_recurring_event_without_pattern_makes_no_storage_calls(self, auth):
        storage = Mock()
        store = CalendarStore(storage, auth)

        with pytest.raises(ValidationError) as exc_info:
            store.create_event(new_event(is_recurring=True, recurrence_pattern=None))

        assert exc_info.value.field == "recurrence_pattern"
        assert storage.method_calls == []
        assert store.events == []

    def test_update_event_with_bad_id(self, auth):
        storage = Mock()
        store = CalendarStore(storage, auth)

        with pytest.raises(ValidationError):
            store.update_event(new_event(id="not-a-uuid"))

        assert storage.method_calls == []

    def test_delete_event_with_bad_id(self, auth):
        storage = Mock()
        store = CalendarStore(storage, auth)

        with pytest.raises(ValidationError):
            store.delete_event("123")

        assert storage.method_calls == []

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.create_event(new_event()),
            lambda s: s.update_event(new_event()),
            lambda s: s.delete_event(EVENT_ID),
            lambda s: s.create_calendar(Calendar(name="X", color="#000000")),
            lambda s: s.update_calendar(Calendar(name="X", color="#000000")),
            lambda s: s.delete_calendar(MINE_ID),
        ],
    )
    def test_mutations_require_authentication(self, call):
        storage = Mock()
        store = CalendarStore(storage, AuthContext())

        with pytest.raises(UnauthenticatedError):
            call(store)

        assert storage.method_calls == []


class TestEventMutations:
    """Test local-first event writes."""

    def test_create_event_writes_row_and_satellites(self, loaded_store, seeded_storage):
        result = loaded_store.create_event(new_event())

        assert result.applied and result.persisted
        created = result.entity
        assert created in loaded_store.events
        assert created.event_type_id == "type-court"

        row = next(r for r in seeded_storage.rows(TABLE_EVENTS) if r["id"] == created.id)
        assert row["created_by"] == USER_ID
        assert row["title"] == "Deposition"

        reminders = seeded_storage.select(TABLE_EVENT_REMINDERS, {"event_id": created.id})
        assert [r["reminder_time"] for r in reminders] == [60]
        assert len(seeded_storage.select(TABLE_EVENT_ATTENDEES, {"event_id": created.id})) == 2
        assert len(seeded_storage.select(TABLE_EVENT_DOCUMENTS, {"event_id": created.id})) == 1

    def test_create_replaces_non_uuid_id(self, loaded_store):
        result = loaded_store.create_event(new_event(id="temp"))

        assert result.entity.id != "temp"
        assert len(result.entity.id) == 36

    def test_create_all_day_event_is_normalized(self, loaded_store):
        result = loaded_store.create_event(new_event(is_all_day=True))

        assert result.entity.start == datetime(2024, 3, 5, 0, 0)
        assert result.entity.end == datetime(2024, 3, 5, 23, 59, 59, 999000)

    def test_remote_failure_keeps_local_change(self, loaded_store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENTS, "insert")
        before = len(loaded_store.events)

        result = loaded_store.create_event(new_event())

        assert result.applied is True
        assert result.persisted is False
        assert isinstance(result.error, RemoteError)
        assert len(loaded_store.events) == before + 1
        assert loaded_store.error
        with pytest.raises(RemoteError):
            result.raise_for_error()

    def test_satellite_failure_does_not_fail_the_write(self, loaded_store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENT_DOCUMENTS, "insert")

        result = loaded_store.create_event(new_event())

        assert result.persisted is True
        assert result.error is None

    def test_update_event_replaces_cached_copy(self, loaded_store, seeded_storage):
        event = loaded_store.get_event(EVENT_ID)

        result = loaded_store.update_event(event.copy(title="Hearing (moved)", reminder="none"))

        assert result.persisted
        assert loaded_store.get_event(EVENT_ID).title == "Hearing (moved)"
        stored = seeded_storage.select(TABLE_EVENTS, {"id": EVENT_ID})[0]
        assert stored["title"] == "Hearing (moved)"
        assert stored["event_type_id"] == "type-court"
        assert seeded_storage.select(TABLE_EVENT_REMINDERS, {"event_id": EVENT_ID}) == []

    def test_update_of_missing_row_is_not_persisted(self, loaded_store, seeded_storage):
        missing_id = "eeeeeeee-0000-4000-8000-00000000ffff"

        result = loaded_store.update_event(new_event(id=missing_id))

        assert result.applied is False
        assert result.persisted is False
        assert isinstance(result.error, RemoteError)
        assert result.error.operation == "update"
        assert loaded_store.error
        assert seeded_storage.select(TABLE_EVENT_ATTENDEES, {"event_id": missing_id}) == []
        assert seeded_storage.select(TABLE_EVENT_DOCUMENTS, {"event_id": missing_id}) == []

    def test_update_with_default_type_clears_type(self, loaded_store, seeded_storage):
        event = loaded_store.get_event(EVENT_ID)

        loaded_store.update_event(event.copy(type="default"))

        assert seeded_storage.select(TABLE_EVENTS, {"id": EVENT_ID})[0]["event_type_id"] is None

    def test_update_does_not_mutate_collection_in_place(self, loaded_store):
        events_before = loaded_store.events
        event = loaded_store.get_event(EVENT_ID)

        loaded_store.update_event(event.copy(title="Changed"))

        assert loaded_store.events is not events_before
        assert events_before[0].title == "Hearing"

    def test_delete_event_removes_satellites_before_row(self, loaded_store, seeded_storage):
        seeded_storage.calls.clear()

        result = loaded_store.delete_event(EVENT_ID)

        assert result.persisted
        assert loaded_store.get_event(EVENT_ID) is None
        tables = [t for op, t in seeded_storage.calls if op == "delete"]
        assert tables[-1] == TABLE_EVENTS
        assert set(tables[:-1]) == {
            TABLE_EVENT_ATTENDEES,
            TABLE_EVENT_REMINDERS,
            TABLE_EVENT_DOCUMENTS,
        }
        assert seeded_storage.rows(TABLE_EVENT_REMINDERS) == []

    def test_delete_event_failure_keeps_local_removal(self, loaded_store, seeded_storage):
        seeded_storage.fail_on(TABLE_EVENTS, "delete")

        result = loaded_store.delete_event(EVENT_ID)

        assert result.applied and not result.persisted
        assert loaded_store.get_event(EVENT_ID) is None

    def test_make_event_recurring_and_back(self, loaded_store, seeded_storage):
        pattern = RecurrencePattern(frequency="weekly", occurrences=4)

        loaded_store.make_event_recurring(EVENT_ID, pattern)

        stored = seeded_storage.select(TABLE_EVENTS, {"id": EVENT_ID})[0]
        assert stored["is_recurring"] is True
        assert '"weekly"' in stored["recurrence_pattern"]

        loaded_store.make_event_non_recurring(EVENT_ID)

        stored = seeded_storage.select(TABLE_EVENTS, {"id": EVENT_ID})[0]
        assert stored["is_recurring"] is False
        assert stored["recurrence_pattern"] is None

    def test_make_recurring_unknown_event(self, loaded_store):
        with pytest.raises(EventNotFoundError):
            loaded_store.make_event_recurring(
                "eeeeeeee-0000-4000-8000-00000000ffff", RecurrencePattern(frequency="daily")
            )


class TestCalendarMutations:
    """Test calendar writes."""

    def test_create_calendar_is_owned_and_checked(self, loaded_store, seeded_storage):
        result = loaded_store.create_calendar(Calendar(name="Clients", color="#00FF00"))

        created = result.entity
        assert result.persisted
        assert created.owner_id == USER_ID
        assert created.checked is True
        assert created in loaded_store.my_calendars
        row = seeded_storage.select(TABLE_CALENDARS, {"id": created.id})[0]
        assert row["user_id"] == USER_ID
        assert "checked" not in row

    def test_update_calendar(self, loaded_store, seeded_storage):
        calendar = loaded_store.get_calendar(MINE_ID)

        result = loaded_store.update_calendar(
            Calendar(id=MINE_ID, name="Renamed", color="#999999", owner_id=calendar.owner_id)
        )

        assert result.persisted
        assert loaded_store.get_calendar(MINE_ID).name == "Renamed"
        assert seeded_storage.select(TABLE_CALENDARS, {"id": MINE_ID})[0]["name"] == "Renamed"

    def test_delete_calendar_drops_its_events_locally(self, loaded_store):
        result = loaded_store.delete_calendar(MINE_ID)

        assert result.persisted
        assert loaded_store.get_calendar(MINE_ID) is None
        assert all(e.calendar != MINE_ID for e in loaded_store.events)

    def test_toggle_unknown_calendar(self, loaded_store):
        with pytest.raises(CalendarNotFoundError):
            loaded_store.toggle_calendar(PRIVATE_ID)


class TestEventsInRange:
    """Test the display query."""

    def test_expands_filters_and_colors(self, loaded_store, seeded_storage):
        loaded_store.create_event(
            new_event(
                title="Firm standup",
                calendar=FIRM_ID,
                start=datetime(2024, 3, 4, 9),
                end=datetime(2024, 3, 4, 9, 15),
                is_recurring=True,
                recurrence_pattern=RecurrencePattern(frequency="daily", occurrences=3),
            )
        )
        window = (datetime(2024, 3, 1), datetime(2024, 3, 31))

        titles = [e.title for e in loaded_store.events_in_range(*window)]
        assert titles == ["Hearing"]

        loaded_store.toggle_calendar(FIRM_ID)
        events = loaded_store.events_in_range(*window)

        assert [e.title for e in events] == ["Hearing", "Firm standup", "Firm standup", "Firm standup"]
        assert events[1].calendar_color == "#222222"
        assert events[1].occurrence is not None

    def test_snapshot_shape(self, loaded_store):
        snapshot = loaded_store.snapshot()

        assert set(snapshot) == {"my_calendars", "other_calendars", "events", "loading", "error"}
        assert snapshot["loading"] is False
