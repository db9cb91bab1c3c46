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
Periodic cache refresh for the calendar store.
"""

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config.constants import (
    DEFAULT_REFRESH_INTERVAL_MINUTES,
    MAX_REFRESH_INTERVAL_MINUTES,
    MIN_REFRESH_INTERVAL_MINUTES,
)
from core.calendar.exceptions import CalendarError
from utils.time_utils import current_iso_timestamp

logger = logging.getLogger("lexcal.calendar.refresh_scheduler")

REFRESH_JOB_ID = "calendar_refresh"
MANUAL_REFRESH_JOB_ID = "calendar_refresh_manual"


class RefreshScheduler:
    """
    Re-fetches calendars and events at a fixed interval.

    Uses an APScheduler background job. A failed refresh is logged and the
    next run happens on schedule; there are no retries in between.
    """

    def __init__(self, store, interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES):
        """
        Initialize the refresh scheduler.

        Args:
            store: CalendarStore to refresh
            interval_minutes: Refresh interval in minutes
        """
        if not MIN_REFRESH_INTERVAL_MINUTES <= interval_minutes <= MAX_REFRESH_INTERVAL_MINUTES:
            raise ValueError(
                f"interval_minutes must be between {MIN_REFRESH_INTERVAL_MINUTES} "
                f"and {MAX_REFRESH_INTERVAL_MINUTES}, got {interval_minutes}"
            )

        self.store = store
        self.interval_minutes = interval_minutes
        self.scheduler = BackgroundScheduler()
        self.is_running = False

        self.last_refresh_at: Optional[str] = None
        self.last_refresh_ok: Optional[bool] = None
        self.failure_count = 0

        logger.info(f"RefreshScheduler initialized with {interval_minutes}min interval")

    def start(self):
        """Start the periodic refresh job."""
        if self.is_running:
            logger.warning("Scheduler is already running")
            return

        try:
            self.scheduler.add_job(
                func=self._refresh,
                trigger=IntervalTrigger(minutes=self.interval_minutes),
                id=REFRESH_JOB_ID,
                name="Calendar Refresh Job",
                replace_existing=True,
                max_instances=1,
            )

            self.scheduler.start()
            self.is_running = True
            logger.info("Refresh scheduler started")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the periodic refresh job."""
        if not self.is_running:
            logger.warning("Scheduler is not running")
            return

        try:
            self.scheduler.shutdown(wait=True)
            self.is_running = False
            logger.info("Refresh scheduler stopped")

        except Exception as e:
            logger.error(f"Failed to stop scheduler: {e}")
            raise

    def refresh_now(self):
        """Queue a one-off refresh in addition to the scheduled ones."""
        if not self.is_running:
            logger.warning("Scheduler is not running, cannot trigger manual refresh")
            return

        self.scheduler.add_job(
            func=self._refresh,
            id=MANUAL_REFRESH_JOB_ID,
            name="Manual Calendar Refresh",
            replace_existing=True,
        )
        logger.info("Manual refresh triggered")

    def _refresh(self):
        """Job body: refresh the store and record the outcome."""
        logger.info("Starting scheduled calendar refresh")
        try:
            ok = self.store.refresh()
        except CalendarError as e:
            # Keep the job alive; the next interval tries again
            logger.error(f"Calendar refresh raised: {e}")
            ok = False

        self.last_refresh_at = current_iso_timestamp()
        self.last_refresh_ok = ok
        if ok:
            self.failure_count = 0
            logger.info(
                f"Refresh completed: {len(self.store.events)} event(s) in "
                f"{len(self.store.my_calendars) + len(self.store.other_calendars)} calendar(s)"
            )
        else:
            self.failure_count += 1
            logger.warning(
                f"Refresh failed ({self.failure_count} in a row): {self.store.error}"
            )

    def get_next_refresh_time(self) -> Optional[str]:
        """
        Get the next scheduled refresh time.

        Returns:
            ISO format timestamp of next refresh, or None if not scheduled
        """
        if not self.is_running:
            return None

        job = self.scheduler.get_job(REFRESH_JOB_ID)
        if job and job.next_run_time:
            return job.next_run_time.isoformat()
        return None

    def get_status(self) -> dict:
        return {
            "is_running": self.is_running,
            "interval_minutes": self.interval_minutes,
            "next_refresh_time": self.get_next_refresh_time(),
            "last_refresh_at": self.last_refresh_at,
            "last_refresh_ok": self.last_refresh_ok,
            "failure_count": self.failure_count,
        }
