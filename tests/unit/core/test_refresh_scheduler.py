# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for RefreshScheduler.

Tests job registration, start/stop lifecycle and outcome tracking.
"""

from unittest.mock import MagicMock, Mock, patch

import pytest

from core.calendar.exceptions import RemoteError
from core.calendar.refresh_scheduler import REFRESH_JOB_ID, RefreshScheduler


class MockStore:
    """Mock calendar store for testing."""

    def __init__(self):
        self.refresh_calls = 0
        self.results = []
        self.events = []
        self.my_calendars = []
        self.other_calendars = []
        self.error = None

    def refresh(self):
        """Mock refresh."""
        self.refresh_calls += 1
        ok = self.results.pop(0) if self.results else True
        self.error = None if ok else "storage unavailable"
        return ok


@pytest.fixture
def mock_store():
    return MockStore()


@pytest.fixture
def refresh_scheduler(mock_store):
    with patch("core.calendar.refresh_scheduler.BackgroundScheduler") as scheduler_cls:
        scheduler_cls.return_value = MagicMock()
        yield RefreshScheduler(mock_store, interval_minutes=15)


class TestRefreshSchedulerInitialization:
    def test_init_default_interval(self, mock_store):
        scheduler = RefreshScheduler(mock_store)

        assert scheduler.interval_minutes == 15
        assert not scheduler.is_running
        assert scheduler.failure_count == 0

    @pytest.mark.parametrize("interval", [0, 1441])
    def test_init_rejects_out_of_range_interval(self, mock_store, interval):
        with pytest.raises(ValueError):
            RefreshScheduler(mock_store, interval_minutes=interval)


class TestRefreshSchedulerLifecycle:
    def test_start_registers_single_instance_job(self, refresh_scheduler):
        refresh_scheduler.start()

        kwargs = refresh_scheduler.scheduler.add_job.call_args.kwargs
        assert kwargs["id"] == REFRESH_JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["trigger"].interval.total_seconds() == 15 * 60
        refresh_scheduler.scheduler.start.assert_called_once()
        assert refresh_scheduler.is_running

    def test_start_twice_is_ignored(self, refresh_scheduler):
        refresh_scheduler.start()
        refresh_scheduler.start()

        assert refresh_scheduler.scheduler.start.call_count == 1

    def test_stop(self, refresh_scheduler):
        refresh_scheduler.start()
        refresh_scheduler.stop()

        refresh_scheduler.scheduler.shutdown.assert_called_once_with(wait=True)
        assert not refresh_scheduler.is_running

    def test_refresh_now_requires_running(self, refresh_scheduler):
        refresh_scheduler.refresh_now()

        refresh_scheduler.scheduler.add_job.assert_not_called()

    def test_next_refresh_time_when_stopped(self, refresh_scheduler):
        assert refresh_scheduler.get_next_refresh_time() is None


class TestRefreshJob:
    def test_success_resets_failure_count(self, refresh_scheduler, mock_store):
        mock_store.results = [False, True]

        refresh_scheduler._refresh()
        assert refresh_scheduler.failure_count == 1
        assert refresh_scheduler.last_refresh_ok is False

        refresh_scheduler._refresh()
        assert refresh_scheduler.failure_count == 0
        assert refresh_scheduler.last_refresh_ok is True
        assert refresh_scheduler.last_refresh_at is not None

    def test_raised_calendar_error_does_not_escape(self, refresh_scheduler, mock_store):
        mock_store.refresh = Mock(side_effect=RemoteError("down"))

        refresh_scheduler._refresh()

        assert refresh_scheduler.last_refresh_ok is False
        assert refresh_scheduler.failure_count == 1

    def test_status(self, refresh_scheduler):
        status = refresh_scheduler.get_status()

        assert status["is_running"] is False
        assert status["interval_minutes"] == 15
        assert status["next_refresh_time"] is None
