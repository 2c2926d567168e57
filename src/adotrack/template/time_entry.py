# SPDX-License-Identifier: MIT

from adotrack.model.time_entry import TimeEntry
from adotrack.model.work_item import WorkItem
from adotrack.time import now_utc


def get_time_entry_template(work_item: WorkItem) -> TimeEntry:
    now = now_utc()
    return {
        "id": None,
        "work_item_id": work_item["id"],
        "work_item_title": work_item["title"],
        "work_item_type": work_item["type"],
        "project_name": work_item["project_name"],
        "organization_id": work_item["organization_id"],
        "organization_name": "Unknown",
        "start": now,
        "end": now,
        "duration_minutes": 0,
        "description": None,
        "synced_to_ado": False,
        "synced_at": None,
        "created": now,
        "updated": now,
    }
