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
Application-wide constants for lexcal.

This module contains constants used across multiple modules to avoid
hardcoded values throughout the codebase.
"""

# ============================================================================
# Storage Constants
# ============================================================================

DATABASE_CONNECTION_TIMEOUT_SECONDS = 30.0
DEFAULT_DATABASE_FILENAME = "lexcal.db"

# PostgREST / Supabase style REST endpoint
REST_API_PATH = "/rest/v1"
DEFAULT_REST_TIMEOUT_SECONDS = 30.0

# Table names in the relational store
TABLE_CALENDARS = "calendars"
TABLE_EVENTS = "events"
TABLE_EVENT_TYPES = "event_types"
TABLE_EVENT_ATTENDEES = "event_attendees"
TABLE_EVENT_REMINDERS = "event_reminders"
TABLE_EVENT_DOCUMENTS = "event_documents"

ALL_TABLES = (
    TABLE_CALENDARS,
    TABLE_EVENTS,
    TABLE_EVENT_TYPES,
    TABLE_EVENT_ATTENDEES,
    TABLE_EVENT_REMINDERS,
    TABLE_EVENT_DOCUMENTS,
)

# ============================================================================
# Calendar Constants
# ============================================================================

# Display colours
DEFAULT_EVENT_COLOR = "#3B82F6"
DEFAULT_CALENDAR_COLOR = "#9CA3AF"

# Refresh scheduling
DEFAULT_REFRESH_INTERVAL_MINUTES = 15
MIN_REFRESH_INTERVAL_MINUTES = 1
MAX_REFRESH_INTERVAL_MINUTES = 1440

# Reminder rows
REMINDER_TYPE_NOTIFICATION = "notification"

# ============================================================================
# Logging Constants
# ============================================================================

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
DEFAULT_LOG_LINES_TO_READ = 100
