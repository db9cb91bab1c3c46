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
Recurrence expansion.

Recurring events are stored once, as a template carrying a pattern.
Instances are materialized on read for whatever window is being shown and
are never written back.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List

from dateutil.relativedelta import relativedelta

from core.calendar.constants import Frequency
from core.calendar.exceptions import ValidationError
from core.calendar.models import Event, OccurrenceKey
from core.calendar.validation import validate_recurrence

logger = logging.getLogger("lexcal.calendar.recurrence")


def _step(frequency: str, count: int) -> relativedelta:
    if frequency == Frequency.DAILY:
        return relativedelta(days=count)
    if frequency == Frequency.WEEKLY:
        return relativedelta(weeks=count)
    if frequency == Frequency.MONTHLY:
        return relativedelta(months=count)
    if frequency == Frequency.YEARLY:
        return relativedelta(years=count)
    raise ValidationError(
        f"Unsupported recurrence frequency: {frequency!r}", field="recurrence_pattern"
    )


def _candidate_starts(origin: datetime, pattern) -> Iterator[datetime]:
    """
    Yield candidate starts in order, beginning with the template start.

    Weekly patterns with weekdays yield every listed day of each stepped
    week; monthly patterns with a month day yield that day of each stepped
    month. Rule dates on or before the template start are skipped.
    """
    yield origin

    if pattern.frequency == Frequency.WEEKLY and pattern.weekdays:
        week_start = origin - timedelta(days=origin.weekday())
        days = sorted(set(pattern.weekdays))
        step = 0
        while True:
            block = week_start + relativedelta(weeks=step * pattern.interval)
            for day in days:
                start = block + timedelta(days=day)
                if start > origin:
                    yield start
            step += 1

    elif pattern.frequency == Frequency.MONTHLY and pattern.month_day:
        step = 0
        while True:
            start = origin + relativedelta(months=step * pattern.interval, day=pattern.month_day)
            if start > origin:
                yield start
            step += 1

    else:
        step = 1
        while True:
            yield origin + _step(pattern.frequency, step * pattern.interval)
            step += 1


def expand(template: Event, range_start: datetime, range_end: datetime) -> List[Event]:
    """
    Materialize the instances of a recurring template inside a window.

    Candidate k starts at ``template.start`` plus k intervals, always
    measured from the template start so that month-end dates clamp
    per month instead of drifting. Weekday and month-day patterns add their
    rule dates after the template start. A candidate is emitted when its
    start lies within ``[range_start, range_end]``; the occurrence limit
    counts candidates from the first one, whether or not they fall in the
    window.

    Args:
        template: Recurring event with a pattern
        range_start: Window start (inclusive)
        range_end: Window end (inclusive)

    Returns:
        Instances in chronological order

    Raises:
        ValidationError: If the template is not recurring or its pattern is invalid
    """
    pattern = template.recurrence_pattern
    if not template.is_recurring or pattern is None:
        raise ValidationError(
            f"Event {template.id} is not a recurring template", field="recurrence_pattern"
        )
    validate_recurrence(pattern)

    if template.start is None or template.end is None:
        raise ValidationError(f"Event {template.id} has no start/end", field="start")

    duration = template.end - template.start
    instances = []

    for index, start in enumerate(_candidate_starts(template.start, pattern)):
        if pattern.occurrences is not None and index >= pattern.occurrences:
            break
        if pattern.end_date is not None and start > pattern.end_date:
            break
        if start > range_end:
            break

        if start >= range_start:
            key = OccurrenceKey(template_id=template.id, index=index, start=start)
            instances.append(
                template.copy(
                    id=key.instance_id,
                    start=start,
                    end=start + duration,
                    occurrence=key,
                )
            )

    logger.debug(
        f"Expanded {template.id} ({pattern.frequency}/{pattern.interval}) "
        f"into {len(instances)} instance(s)"
    )
    return instances


def expand_window(
    events: Iterable[Event], range_start: datetime, range_end: datetime
) -> List[Event]:
    """
    Combine one-off events overlapping a window with expanded instances.

    Args:
        events: Cached events, templates included
        range_start: Window start
        range_end: Window end

    Returns:
        Events sorted by start
    """
    result = []
    for event in events:
        if event.is_recurring and event.recurrence_pattern is not None:
            result.extend(expand(event, range_start, range_end))
        elif event.overlaps(range_start, range_end):
            result.append(event)

    result.sort(key=lambda e: e.start)
    return result
