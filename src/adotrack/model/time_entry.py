# SPDX-License-Identifier: MIT

from typing import Optional, TypedDict

import pendulum

from adotrack.model.entity_id import EntityId


class TimeEntry(TypedDict):
    id: Optional[EntityId]
    work_item_id: int
    work_item_title: str
    work_item_type: str
    project_name: str
    organization_id: EntityId
    organization_name: str
    start: pendulum.DateTime
    end: pendulum.DateTime
    duration_minutes: int
    description: Optional[str]
    synced_to_ado: bool
    synced_at: Optional[pendulum.DateTime]
    created: pendulum.DateTime
    updated: pendulum.DateTime
