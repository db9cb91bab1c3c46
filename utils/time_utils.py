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
"""Time utilities for lexcal.

Calendar values are naive local wall-clock datetimes. Anything aware that
comes back from storage is converted to local time and made naive.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional

logger = logging.getLogger("lexcal.utils.time_utils")

END_OF_DAY = time(23, 59, 59, 999000)


def now_utc() -> datetime:
    """Get current datetime with UTC timezone."""
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """Get current naive local datetime."""
    return datetime.now()


def current_iso_timestamp() -> str:
    """Get current UTC timestamp as ISO 8601 string with 'Z' suffix."""
    return now_utc().isoformat().replace("+00:00", "Z")


def to_local_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting an aware datetime to local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp into a naive local datetime.

    Args:
        value: datetime, date, or ISO 8601 string (a trailing 'Z' is accepted)

    Returns:
        Naive datetime, or None for empty input

    Raises:
        ValueError: If a string cannot be parsed
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        # Postgres may return a space separator
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid ISO 8601 timestamp: {value!r}") from exc
        return to_local_naive(parsed)

    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def to_iso_timestamp(value: datetime) -> str:
    """Serialize a datetime in the canonical storage form."""
    return to_local_naive(value).isoformat()


def start_of_day(value: datetime) -> datetime:
    """Return 00:00:00.000 on the same day."""
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    """Return 23:59:59.999 on the same day."""
    return datetime.combine(value.date(), END_OF_DAY)


def is_all_day_span(start: datetime, end: datetime) -> bool:
    """Whether a start/end pair has the normalized all-day shape."""
    return start.time() == time.min and end.time() == END_OF_DAY


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the epoch for a naive local datetime."""
    whole_seconds = int(value.replace(microsecond=0).timestamp())
    return whole_seconds * 1000 + value.microsecond // 1000
