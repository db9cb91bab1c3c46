#!/usr/bin/env python3
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
lexcal entry point.

Loads configuration, connects to storage, refreshes the calendar cache
and logs the agenda for the coming days. With ``--watch`` the process
keeps refreshing on the configured interval until interrupted.
"""

import argparse
import os
import sys
import time
from datetime import timedelta

from config.__version__ import get_version
from config.app_config import ConfigManager
from core.calendar.auth import AuthContext
from utils.app_initializer import create_calendar_store, create_refresh_scheduler, create_storage
from utils.logger import get_log_file_path, setup_logging
from utils.time_utils import end_of_day, now_local, start_of_day


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="lexcal calendar service")
    parser.add_argument(
        "--user",
        default=os.environ.get("LEXCAL_USER_ID"),
        help="Signed-in user id (defaults to $LEXCAL_USER_ID)",
    )
    parser.add_argument("--days", type=int, default=7, help="Agenda length in days")
    parser.add_argument(
        "--demo", action="store_true", help="Seed an empty database with demo data"
    )
    parser.add_argument(
        "--watch", action="store_true", help="Keep refreshing until interrupted"
    )
    return parser.parse_args(argv)


def log_agenda(logger, store, days: int):
    start = start_of_day(now_local())
    end = end_of_day(start + timedelta(days=max(days, 1) - 1))
    events = store.events_in_range(start, end)

    logger.info(
        f"{len(store.my_calendars)} own calendar(s), "
        f"{len(store.other_calendars)} shared calendar(s), "
        f"{len(store.events)} stored event(s)"
    )
    logger.info(f"Agenda {start:%Y-%m-%d} to {end:%Y-%m-%d}: {len(events)} event(s)")
    for event in events:
        when = f"{event.start:%a %d %b}" if event.is_all_day else f"{event.start:%a %d %b %H:%M}"
        logger.info(f"  {when}  {event.title} [{event.type}]")


def main(argv=None):
    """Application entry point."""
    args = parse_args(argv)

    try:
        config = ConfigManager()
        logger = setup_logging(
            level=config.get("logging.level"),
            console_output=config.get("logging.console_output", True),
        )

        logger.info("=" * 60)
        logger.info(f"lexcal {get_version()} starting")
        logger.info(f"Logging to {get_log_file_path()}")
        logger.info("=" * 60)

        auth = AuthContext()
        if args.user:
            auth.sign_in(args.user)
        else:
            logger.warning("No user given; calendars will not load")

        storage = create_storage(config)
        if args.demo:
            if not auth.is_authenticated:
                logger.error("--demo needs a user id")
                return 2
            from core.calendar.demo import seed_storage

            seed_storage(storage, auth.user_id)

        store = create_calendar_store(config, auth, storage=storage)
        if not store.refresh():
            logger.error(f"Initial refresh failed: {store.error}")

        log_agenda(logger, store, args.days)

        if not args.watch:
            storage.close()
            return 0 if store.error is None else 1

        scheduler = create_refresh_scheduler(store, config)
        if scheduler is None:
            logger.warning("Auto refresh is disabled in configuration; nothing to watch")
            storage.close()
            return 0

        scheduler.start()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            scheduler.stop()
            storage.close()
        return 0

    except Exception as e:
        print(f"Fatal error during application startup: {e}")
        import traceback

        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
