# SPDX-License-Identifier: MIT

from typing import TypedDict

import pendulum

from adotrack.model.time_entry import TimeEntry


class WorkItemTotal(TypedDict):
    title: str
    minutes: int


class DailySummary(TypedDict):
    date: pendulum.Date
    total_minutes: int
    entries: list[TimeEntry]
    by_project: dict[str, int]
    by_work_item: dict[int, WorkItemTotal]
