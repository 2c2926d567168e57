# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

from adotrack.model.entity_id import EntityId

TRACKABLE_TYPES = ("Task", "Bug", "User Story", "Feature", "Product Backlog Item")
TERMINAL_STATES = ("Closed", "Resolved", "Done", "Removed")


class WorkItem(TypedDict):
    id: int
    title: str
    type: str
    state: str
    organization_id: EntityId
    project_name: str
    assigned_to: Optional[str]
    completed_work: Optional[float]  # Hours already logged remotely
    remaining_work: Optional[float]
    original_estimate: Optional[float]
    area_path: Optional[str]
    iteration_path: Optional[str]
    url: str


def is_trackable(work_item: WorkItem) -> bool:
    return (
        work_item["type"] in TRACKABLE_TYPES
        and work_item["state"] not in TERMINAL_STATES
    )
