# SPDX-License-Identifier: MIT

from typing import Optional

import pendulum

from adotrack.model.time_entry import TimeEntry
from adotrack.model.work_item import WorkItem
from adotrack.template.time_entry import get_time_entry_template
from adotrack.time import milliseconds_between, now_utc


class TimeEntryValidationError(Exception):
    """Raised when a manual time entry is not valid."""

    pass


def create_manual_time_entry(
    work_item: WorkItem,
    organization_name: str,
    start: pendulum.DateTime,
    end: Optional[pendulum.DateTime] = None,
    minutes: Optional[int] = None,
    description: Optional[str] = None,
) -> TimeEntry:
    """
    Build an unsynced entry for time that was not captured by the timer.

    Exactly one of end or minutes must be given. The duration must be at
    least one whole minute and must not end in the future.
    """
    if (end is None) == (minutes is None):
        raise TimeEntryValidationError("Provide either an end time or a duration.")

    if end is None:
        assert minutes is not None
        if minutes < 1:
            raise TimeEntryValidationError("Duration must be at least 1 minute.")
        end = start.add(minutes=minutes)
    else:
        if end <= start:
            raise TimeEntryValidationError("End time must be after the start time.")
        minutes = milliseconds_between(start, end) // 60_000
        if minutes < 1:
            raise TimeEntryValidationError("Duration must be at least 1 minute.")

    now = now_utc()
    if end > now:
        raise TimeEntryValidationError("Manual entries cannot end in the future.")

    time_entry = get_time_entry_template(work_item)
    time_entry["organization_name"] = organization_name
    time_entry["start"] = start
    time_entry["end"] = end
    time_entry["duration_minutes"] = minutes
    time_entry["description"] = description
    time_entry["created"] = now
    time_entry["updated"] = now
    return time_entry


def can_delete_time_entry(time_entry: TimeEntry, force: bool) -> bool:
    """Synced entries are part of the remote total; deleting them needs force."""
    return force or not time_entry["synced_to_ado"]
