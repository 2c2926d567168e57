# SPDX-License-Identifier: MIT

import pendulum

from adotrack.model.report import DailySummary
from adotrack.model.time_entry import TimeEntry


def get_daily_summaries(
    time_entries: list[TimeEntry],
    start_date: pendulum.Date,
    end_date: pendulum.Date,
) -> list[DailySummary]:
    """
    Summarize entries per local calendar day, from start_date to end_date
    inclusive. Entries are bucketed by the local date they started on.

    Returns one summary per day, including days without entries:
        {
            "date": pendulum.Date,
            "total_minutes": int,
            "entries": list[TimeEntry],
            "by_project": {project_name: minutes},
            "by_work_item": {work_item_id: {"title": str, "minutes": int}},
        }
    """
    summaries: list[DailySummary] = []

    current_date = start_date
    while current_date <= end_date:
        day_entries = [
            time_entry
            for time_entry in time_entries
            if time_entry["start"].in_tz("local").date() == current_date
        ]
        day_entries.sort(key=lambda time_entry: time_entry["start"])

        summary: DailySummary = {
            "date": current_date,
            "total_minutes": 0,
            "entries": day_entries,
            "by_project": {},
            "by_work_item": {},
        }
        for time_entry in day_entries:
            minutes = time_entry["duration_minutes"]
            summary["total_minutes"] += minutes

            project = time_entry["project_name"]
            summary["by_project"][project] = summary["by_project"].get(project, 0) + minutes

            work_item_id = time_entry["work_item_id"]
            if work_item_id not in summary["by_work_item"]:
                summary["by_work_item"][work_item_id] = {
                    "title": time_entry["work_item_title"],
                    "minutes": 0,
                }
            summary["by_work_item"][work_item_id]["minutes"] += minutes

        summaries.append(summary)
        current_date = current_date.add(days=1)

    return summaries
